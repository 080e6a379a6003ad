from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from rental_contracts.models.audit_log import AuditLog


class AuditAction:
    # Offers
    CONTRACT_REQUESTED = "CONTRACT_REQUESTED"

    # Contract lifecycle
    CONTRACT_CREATED = "CONTRACT_CREATED"
    CONTRACT_DRAFT_MODIFIED = "CONTRACT_DRAFT_MODIFIED"
    CONTRACT_SIGNED_OWNER = "CONTRACT_SIGNED_OWNER"
    CONTRACT_SIGNED_TENANT = "CONTRACT_SIGNED_TENANT"
    CONTRACT_MODIFICATION_APPLIED = "CONTRACT_MODIFICATION_APPLIED"
    CONTRACT_EXPORTED = "CONTRACT_EXPORTED"

    # Change requests
    MODIFICATION_REQUESTED = "MODIFICATION_REQUESTED"
    TERMINATION_REQUESTED = "TERMINATION_REQUESTED"
    CHANGE_REQUEST_ANSWERED = "CHANGE_REQUEST_ANSWERED"

    # Sweeper
    EXPIRATION_SWEEP_RUN = "EXPIRATION_SWEEP_RUN"


class AuditService:
    def write(
        self,
        db: Session,
        *,
        contract_id: Optional[str],
        actor_id: Optional[str],
        actor_role: Optional[str],
        action: str,
        request_id: Optional[str],
        details: Dict[str, Any],
    ) -> AuditLog:
        row = AuditLog(
            contract_id=contract_id,
            actor_id=actor_id,
            actor_role=actor_role,
            action=action,
            request_id=request_id,
            details_json=details,
        )
        db.add(row)
        db.commit()
        return row
