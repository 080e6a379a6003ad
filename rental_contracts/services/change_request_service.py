# rental_contracts/services/change_request_service.py
from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from rental_contracts.core.clock import Clock, SystemClock
from rental_contracts.core.config import Settings, get_settings
from rental_contracts.core.contract_state_graph import assert_transition
from rental_contracts.core.errors import ConflictError, ValidationError
from rental_contracts.core.modification_fields import parse_fields
from rental_contracts.models.change_request import ContractChangeRequest
from rental_contracts.models.contract import Contract
from rental_contracts.models.enums import (
    ChangeRequestKind,
    ChangeRequestStatus,
    ChangeResponse,
    ContractStatus,
    NotificationType,
    PropertyAvailability,
    UserRole,
)
from rental_contracts.policies import contract_policy
from rental_contracts.policies.rbac import Principal
from rental_contracts.services.contract_lifecycle_service import commit_or_conflict
from rental_contracts.services.contract_store import ContractStore
from rental_contracts.services.notification_service import NotificationService
from rental_contracts.services.property_service import PropertyService
from rental_contracts.services.request_store import RequestStore

logger = logging.getLogger(__name__)


def _required_text(value: Optional[str], what: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{what} is required.")
    return value.strip()


class ChangeRequestService:
    """
    Owner proposes, tenant disposes.

    For every response:
    - responder is the contract's tenant
    - request is still pending (a second answer is a ConflictError)
    - a rejection never touches the contract
    """

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[Settings] = None):
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.contracts = ContractStore()
        self.requests = RequestStore()
        self.properties = PropertyService()
        self.notifications = NotificationService()

    # ---------------------------
    # READS
    # ---------------------------

    def get_request(self, db: Session, *, request_id: uuid.UUID, actor_id: str) -> ContractChangeRequest:
        req = self.requests.get(db, request_id)
        contract = self.contracts.get(db, req.contract_id)
        contract_policy.require_party(contract, actor_id)
        return req

    def list_pending_requests(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        include_resolved: bool = False,
    ) -> List[ContractChangeRequest]:
        contract = self.contracts.get(db, contract_id)
        contract_policy.require_party(contract, actor_id)
        return self.requests.list_for_contract(db, contract.id, include_resolved=include_resolved)

    def list_user_requests(
        self,
        db: Session,
        *,
        principal: Principal,
        kind: Optional[ChangeRequestKind] = None,
    ) -> List[ContractChangeRequest]:
        """
        Owners see the requests they made; tenants see the requests
        addressed to contracts they rent.
        """
        if principal.role == UserRole.OWNER:
            return self.requests.list_made_by(db, principal.user_id, kind=kind)
        return self.requests.list_addressed_to(db, principal.user_id, kind=kind)

    # ---------------------------
    # OWNER PROPOSALS
    # ---------------------------

    def request_modification(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        modification_reason: str,
        fields_to_modify: List[str],
        requested_changes: Optional[Dict[str, Any]] = None,
    ) -> ContractChangeRequest:
        reason = _required_text(modification_reason, "Modification reason")
        fields = parse_fields(fields_to_modify)

        contract = self.contracts.get_for_update(db, contract_id)
        contract_policy.require_owner(contract, actor_id)
        self._require_active(contract, "Modifications can only be requested for active contracts.")
        if self.requests.pending_for_contract(db, contract.id, ChangeRequestKind.modification):
            raise ConflictError("A modification request is already pending for this contract.")

        now = self.clock.now()
        req = ContractChangeRequest(
            contract_id=contract.id,
            requester_id=actor_id,
            kind=ChangeRequestKind.modification.value,
            status=ChangeRequestStatus.pending.value,
            fields_to_modify=[f.value for f in fields],
            modification_reason=reason,
            requested_changes=requested_changes,
            created_at=now,
            updated_at=now,
        )
        db.add(req)
        commit_or_conflict(db, "A modification request is already pending for this contract.")
        db.refresh(req)

        logger.info(
            "modification_requested",
            extra={"contract_id": str(contract.id), "request_id": str(req.id), "fields": req.fields_to_modify},
        )
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="Contract modification requested",
            message=(
                f"The owner asks to modify the contract. Reason: {reason}. "
                f"Fields to modify: {', '.join(req.fields_to_modify)}."
            ),
            type=NotificationType.contract_modification_request,
            related_id=contract.id,
        )
        return req

    def request_termination(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        reason: str,
        detailed_reason: Optional[str] = None,
    ) -> ContractChangeRequest:
        reason = _required_text(reason, "Termination reason")

        contract = self.contracts.get_for_update(db, contract_id)
        contract_policy.require_owner(contract, actor_id)
        self._require_active(contract, "Termination can only be requested for active contracts.")
        if self.requests.pending_for_contract(db, contract.id, ChangeRequestKind.termination):
            raise ConflictError("A termination request is already pending for this contract.")

        now = self.clock.now()
        req = ContractChangeRequest(
            contract_id=contract.id,
            requester_id=actor_id,
            kind=ChangeRequestKind.termination.value,
            status=ChangeRequestStatus.pending.value,
            reason=reason,
            detailed_reason=detailed_reason,
            created_at=now,
            updated_at=now,
        )
        db.add(req)
        commit_or_conflict(db, "A termination request is already pending for this contract.")
        db.refresh(req)

        logger.info(
            "termination_requested",
            extra={"contract_id": str(contract.id), "request_id": str(req.id)},
        )
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="Early termination requested",
            message=f"The owner asks to end the contract early. Reason: {reason}.",
            type=NotificationType.contract_termination_request,
            related_id=contract.id,
        )
        return req

    # ---------------------------
    # TENANT RESPONSES
    # ---------------------------

    def respond(
        self,
        db: Session,
        *,
        request_id: uuid.UUID,
        actor_id: str,
        response: ChangeResponse,
        tenant_comment: Optional[str] = None,
    ) -> ContractChangeRequest:
        """
        Dispatches on the stored kind, so the caller never picks which
        protocol applies.
        """
        req = self.requests.get(db, request_id)
        if req.kind == ChangeRequestKind.modification.value:
            return self.respond_to_modification(
                db, request_id=request_id, actor_id=actor_id, response=response, tenant_comment=tenant_comment
            )
        return self.respond_to_termination(
            db, request_id=request_id, actor_id=actor_id, response=response, tenant_comment=tenant_comment
        )

    def respond_to_modification(
        self,
        db: Session,
        *,
        request_id: uuid.UUID,
        actor_id: str,
        response: ChangeResponse,
        tenant_comment: Optional[str] = None,
    ) -> ContractChangeRequest:
        req, contract = self._lock_pending(db, request_id, actor_id, ChangeRequestKind.modification)
        now = self.clock.now()

        if response == ChangeResponse.rejected:
            self._record_response(req, ChangeRequestStatus.rejected, tenant_comment, now)
            db.commit()
            db.refresh(req)
            logger.info("modification_rejected", extra={"contract_id": str(contract.id), "request_id": str(req.id)})
            self.notifications.notify(
                db,
                user_id=contract.owner_id,
                title="Modification rejected",
                message=self._with_comment("The tenant rejected your modification request.", tenant_comment),
                type=NotificationType.contract_modification_rejected,
                related_id=contract.id,
            )
            return req

        self._require_active(contract, "Contract is no longer active; the modification cannot be accepted.")
        assert_transition(contract.status, ContractStatus.waiting_for_modification)

        deadline = now + timedelta(hours=self.settings.modification_window_hours)
        self._record_response(req, ChangeRequestStatus.accepted, tenant_comment, now)
        req.modification_deadline = deadline

        contract.status = ContractStatus.waiting_for_modification.value
        contract.modification_summary = (
            f"Modification accepted by tenant - owner may edit until {deadline.isoformat()}"
        )
        contract.updated_at = now
        db.commit()
        db.refresh(req)

        logger.info(
            "modification_accepted",
            extra={
                "contract_id": str(contract.id),
                "request_id": str(req.id),
                "modification_deadline": deadline.isoformat(),
            },
        )
        self.notifications.notify(
            db,
            user_id=contract.owner_id,
            title="Modification accepted",
            message=self._with_comment(
                f"The tenant accepted your modification request. You have "
                f"{self.settings.modification_window_hours} hours to apply the changes.",
                tenant_comment,
            ),
            type=NotificationType.contract_modification_accepted,
            related_id=contract.id,
        )
        return req

    def respond_to_termination(
        self,
        db: Session,
        *,
        request_id: uuid.UUID,
        actor_id: str,
        response: ChangeResponse,
        tenant_comment: Optional[str] = None,
    ) -> ContractChangeRequest:
        req, contract = self._lock_pending(db, request_id, actor_id, ChangeRequestKind.termination)
        now = self.clock.now()

        if response == ChangeResponse.rejected:
            self._record_response(req, ChangeRequestStatus.rejected, tenant_comment, now)
            db.commit()
            db.refresh(req)
            logger.info("termination_rejected", extra={"contract_id": str(contract.id), "request_id": str(req.id)})
            self.notifications.notify(
                db,
                user_id=contract.owner_id,
                title="Termination rejected",
                message=self._with_comment("The tenant rejected your early termination request.", tenant_comment),
                type=NotificationType.contract_termination_rejected,
                related_id=contract.id,
            )
            return req

        self._require_active(contract, "Contract is no longer active; the termination cannot be accepted.")
        assert_transition(contract.status, ContractStatus.terminated)

        prop = self.properties.lock(db, contract.property_id)
        self._record_response(req, ChangeRequestStatus.accepted, tenant_comment, now)

        contract.status = ContractStatus.terminated.value
        contract.terminated_by = contract.owner_id
        contract.terminated_at = now
        contract.termination_reason = req.reason
        contract.updated_at = now
        self.properties.set_availability(db, prop, PropertyAvailability.available, now=now)
        db.commit()
        db.refresh(req)

        logger.info(
            "contract_terminated",
            extra={"contract_id": str(contract.id), "request_id": str(req.id), "property_id": str(prop.id)},
        )
        self.notifications.notify(
            db,
            user_id=contract.owner_id,
            title="Termination accepted",
            message=self._with_comment(
                "The tenant accepted the early termination. The contract is terminated "
                "and the property is available again.",
                tenant_comment,
            ),
            type=NotificationType.contract_termination_accepted,
            related_id=contract.id,
        )
        return req

    # ---------------------------
    # HELPERS
    # ---------------------------

    def _lock_pending(
        self,
        db: Session,
        request_id: uuid.UUID,
        actor_id: str,
        kind: ChangeRequestKind,
    ) -> tuple[ContractChangeRequest, Contract]:
        # contract first, then request: same lock order as apply_modification
        unlocked = self.requests.get(db, request_id)
        contract = self.contracts.get_for_update(db, unlocked.contract_id)
        req = self.requests.get_for_update(db, request_id)

        if req.kind != kind.value:
            raise ValidationError(f"Request {req.id} is a {req.kind} request, not {kind.value}.")
        contract_policy.require_tenant(contract, actor_id)
        if req.status != ChangeRequestStatus.pending.value:
            raise ConflictError(f"Request has already been answered ({req.status}).")
        return req, contract

    @staticmethod
    def _require_active(contract: Contract, message: str) -> None:
        if contract.status != ContractStatus.active.value:
            raise ConflictError(message)

    @staticmethod
    def _record_response(req: ContractChangeRequest, status: ChangeRequestStatus, comment: Optional[str], now) -> None:
        req.status = status.value
        req.tenant_response = comment
        req.responded_at = now
        req.updated_at = now

    @staticmethod
    def _with_comment(message: str, comment: Optional[str]) -> str:
        if comment and comment.strip():
            return f"{message} Tenant comment: {comment.strip()}"
        return message
