#rental_contracts/models/change_request.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

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
from rental_contracts.models.enums import ChangeRequestStatus


class ContractChangeRequest(Base):
    """
    Owner-initiated request against an active contract, answered by the tenant.

    kind = modification:
      - fields_to_modify (non-empty), modification_reason, optional requested_changes
      - modification_deadline set when the tenant accepts
    kind = termination:
      - reason, optional detailed_reason
    The CHECK constraints below keep the two kinds from sharing columns.
    """

    __tablename__ = "contract_change_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="RESTRICT"), nullable=False
    )
    requester_id: Mapped[str] = mapped_column(String(128), nullable=False)

    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=ChangeRequestStatus.pending.value
    )

    # modification
    fields_to_modify: Mapped[Optional[List[str]]] = mapped_column(JSONDocument, nullable=True)
    modification_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_changes: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONDocument, nullable=True)
    modification_deadline: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    # termination
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    detailed_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tenant_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "kind IN ('modification', 'termination')",
            name="ck_change_requests_kind",
        ),
        CheckConstraint(
            "kind <> 'modification' OR "
            "(fields_to_modify IS NOT NULL AND modification_reason IS NOT NULL "
            "AND reason IS NULL AND detailed_reason IS NULL)",
            name="ck_change_requests_modification_fields",
        ),
        CheckConstraint(
            "kind <> 'termination' OR "
            "(reason IS NOT NULL AND fields_to_modify IS NULL AND modification_reason IS NULL "
            "AND requested_changes IS NULL AND modification_deadline IS NULL)",
            name="ck_change_requests_termination_fields",
        ),
        Index("ix_change_requests_contract_kind_status", "contract_id", "kind", "status"),
        Index("ix_change_requests_requester", "requester_id"),
        # one open request per kind per contract
        Index(
            "uq_change_requests_one_pending_per_kind",
            "contract_id",
            "kind",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
