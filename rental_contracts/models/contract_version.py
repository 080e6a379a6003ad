#rental_contracts/models/contract_version.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    String,
    Text,
    Integer,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from rental_contracts.db.base import Base
from rental_contracts.db.types import JSONDocument, UTCDateTime
from rental_contracts.models.enums import VersionStatus


class ContractVersion(Base):
    """
    Archived snapshot of a contract taken right before an owner modification
    overwrote it.

    Immutability rule:
      - Never UPDATE or DELETE a version (see db/immutability.py).
      - version numbers per contract start at 1 and increase by exactly 1.
    """

    __tablename__ = "contract_versions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="RESTRICT"), nullable=False
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    contract_data: Mapped[Dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    owner_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tenant_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_signed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    tenant_signed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=VersionStatus.superseded.value
    )
    modification_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("contract_id", "version", name="uq_contract_versions_contract_version"),
        CheckConstraint("version >= 1", name="ck_contract_versions_version_positive"),
    )
