#rental_contracts/models/contract.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rental_contracts.db.base import Base
from rental_contracts.db.types import JSONDocument, UTCDateTime
from rental_contracts.models.enums import ContractStatus


class Contract(Base):
    """
    Lease between one owner and one tenant for one property.

    `status` is the single source of truth for branching; signature columns
    are data only. Rows are never deleted, end-of-life is a status.
    """

    __tablename__ = "contracts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    offer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("offers.id", ondelete="RESTRICT"), nullable=False
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="RESTRICT"), nullable=False
    )
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # opaque document (titles, parties, rent, dates...), passed through
    contract_data: Mapped[Dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=dict
    )

    owner_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tenant_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_signed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    tenant_signed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=ContractStatus.draft.value
    )

    tenant_sign_deadline: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    modification_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    termination_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terminated_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    terminated_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "tenant_signature IS NULL OR owner_signature IS NOT NULL",
            name="ck_contracts_tenant_sig_requires_owner_sig",
        ),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s.value}'" for s in ContractStatus)),
            name="ck_contracts_status_known",
        ),
        # 🔒 at most one active contract per property, enforced by the database
        Index(
            "uq_contracts_one_active_per_property",
            "property_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_contracts_property_status", "property_id", "status"),
        Index("ix_contracts_tenant", "tenant_id"),
        Index("ix_contracts_owner", "owner_id"),
        Index("ix_contracts_status_deadline", "status", "tenant_sign_deadline"),
    )
