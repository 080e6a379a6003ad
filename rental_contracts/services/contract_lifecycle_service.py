# rental_contracts/services/contract_lifecycle_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rental_contracts.core.clock import Clock, SystemClock
from rental_contracts.core.config import Settings, get_settings
from rental_contracts.core.contract_state_graph import TENANT_SIGNABLE, assert_transition
from rental_contracts.core.errors import (
    AuthorizationError,
    ConflictError,
    ExpiredError,
    ValidationError,
)
from rental_contracts.core.modification_fields import apply_modifications
from rental_contracts.models.contract import Contract
from rental_contracts.models.enums import (
    ChangeRequestKind,
    ChangeRequestStatus,
    ContractStatus,
    NotificationType,
    OfferStatus,
    PropertyAvailability,
    UserRole,
)
from rental_contracts.policies import contract_policy
from rental_contracts.services.contract_store import ContractStore
from rental_contracts.services.notification_service import NotificationService
from rental_contracts.services.offer_service import OfferService
from rental_contracts.services.property_service import PropertyService
from rental_contracts.services.request_store import RequestStore

logger = logging.getLogger(__name__)

ACTIVE_CONTRACT_EXISTS = "Property already has an active contract."


def commit_or_conflict(db: Session, message: str) -> None:
    """
    Commit; a unique/check violation raised by the database becomes a
    ConflictError after rollback.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("commit_integrity_conflict", extra={"error": str(e.orig)})
        raise ConflictError(message)


def _fmt_deadline(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M UTC")


class ContractLifecycleService:
    """
    Status transitions for a single contract.

    Every transition:
    - locks the contract row FOR UPDATE and re-checks its status
    - runs every check before the first write
    - commits once, then notifies (notification failures never unwind)
    """

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[Settings] = None):
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.contracts = ContractStore()
        self.requests = RequestStore()
        self.properties = PropertyService()
        self.offers = OfferService(clock=self.clock)
        self.notifications = NotificationService()

    # ---------------------------
    # READS
    # ---------------------------

    def get_contract(self, db: Session, *, contract_id: uuid.UUID, actor_id: str) -> Contract:
        contract = self.contracts.get(db, contract_id)
        contract_policy.require_party(contract, actor_id)
        return contract

    def list_contracts(self, db: Session, *, actor_id: str, owner_only: bool = False) -> List[Contract]:
        return self.contracts.list_for_user(db, actor_id, owner_only=owner_only)

    def list_contract_versions(
        self, db: Session, *, contract_id: uuid.UUID, actor_id: str
    ) -> List[Dict[str, Any]]:
        """
        Archived versions in ascending order, followed by a pseudo-entry for
        the live contract (version = last archived + 1, live status).
        """
        contract = self.get_contract(db, contract_id=contract_id, actor_id=actor_id)
        archived = self.contracts.list_versions(db, contract.id)

        out: List[Dict[str, Any]] = [
            {
                "id": str(v.id),
                "contract_id": v.contract_id,
                "version": v.version,
                "contract_data": v.contract_data,
                "owner_signature": v.owner_signature,
                "tenant_signature": v.tenant_signature,
                "owner_signed_at": v.owner_signed_at,
                "tenant_signed_at": v.tenant_signed_at,
                "status": v.status,
                "modification_reason": v.modification_reason,
                "created_at": v.created_at,
                "is_current": False,
            }
            for v in archived
        ]
        out.append(
            {
                "id": "current",
                "contract_id": contract.id,
                "version": (archived[-1].version if archived else 0) + 1,
                "contract_data": contract.contract_data,
                "owner_signature": contract.owner_signature,
                "tenant_signature": contract.tenant_signature,
                "owner_signed_at": contract.owner_signed_at,
                "tenant_signed_at": contract.tenant_signed_at,
                "status": contract.status,
                "modification_reason": contract.modification_summary,
                "created_at": contract.updated_at,
                "is_current": True,
            }
        )
        return out

    # ---------------------------
    # CREATE
    # ---------------------------

    def create_contract(
        self,
        db: Session,
        *,
        offer_id: uuid.UUID,
        actor_id: str,
        contract_data: Optional[Dict[str, Any]] = None,
    ) -> Contract:
        """
        Rules:
        - offer exists and belongs to the actor (as owner)
        - offer is contract_requested
        - no active contract on the property (checked under the property lock)
        """
        offer = self.offers.get_offer(db, offer_id)
        if offer.owner_id != actor_id:
            raise AuthorizationError("Only the offer's owner may create its contract.")
        if offer.status != OfferStatus.contract_requested.value:
            raise ValidationError("Contracts can only be created for offers in contract_requested state.")

        self.properties.lock(db, offer.property_id)
        if self.contracts.active_for_property(db, offer.property_id):
            raise ConflictError(ACTIVE_CONTRACT_EXISTS)

        now = self.clock.now()
        data = {**self.offers.contract_defaults(db, offer), **(contract_data or {})}

        contract = Contract(
            offer_id=offer.id,
            property_id=offer.property_id,
            tenant_id=offer.tenant_id,
            owner_id=offer.owner_id,
            contract_data=data,
            status=ContractStatus.draft.value,
            created_at=now,
            updated_at=now,
        )
        db.add(contract)
        commit_or_conflict(db, ACTIVE_CONTRACT_EXISTS)
        db.refresh(contract)

        logger.info(
            "contract_created",
            extra={"contract_id": str(contract.id), "offer_id": str(offer.id), "property_id": str(offer.property_id)},
        )
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="Contract created",
            message="A contract was drafted for your offer. Waiting for the owner's signature.",
            type=NotificationType.contract,
            related_id=contract.id,
        )
        return contract

    # ---------------------------
    # SIGN
    # ---------------------------

    def sign_contract(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        signer_role: UserRole,
        signature: str,
    ) -> Contract:
        if not signature or not signature.strip():
            raise ValidationError("Signature is required.")

        contract = self.contracts.get_for_update(db, contract_id)
        contract_policy.require_signer(contract, actor_id, signer_role)

        if signer_role == UserRole.OWNER:
            return self._sign_as_owner(db, contract, signature)
        return self._sign_as_tenant(db, contract, signature)

    def _sign_as_owner(self, db: Session, contract: Contract, signature: str) -> Contract:
        if contract.owner_signature is not None:
            raise ConflictError("Owner has already signed this contract.")
        assert_transition(contract.status, ContractStatus.owner_signed)

        now = self.clock.now()
        deadline = now + timedelta(days=self.settings.tenant_sign_window_days)

        contract.owner_signature = signature
        contract.owner_signed_at = now
        contract.tenant_sign_deadline = deadline
        contract.status = ContractStatus.owner_signed.value
        contract.updated_at = now
        db.commit()
        db.refresh(contract)

        logger.info(
            "contract_owner_signed",
            extra={"contract_id": str(contract.id), "tenant_sign_deadline": deadline.isoformat()},
        )
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="New contract to sign",
            message=(
                f"The owner signed the contract. You have {self.settings.tenant_sign_window_days} days "
                f"to sign it before it expires (deadline: {_fmt_deadline(deadline)})."
            ),
            type=NotificationType.contract_signature_required,
            related_id=contract.id,
        )
        return contract

    def _sign_as_tenant(self, db: Session, contract: Contract, signature: str) -> Contract:
        if contract.tenant_signature is not None:
            raise ConflictError("Tenant has already signed this contract.")
        if ContractStatus(contract.status) not in TENANT_SIGNABLE:
            raise ConflictError(f"Contract is not awaiting the tenant's signature (status {contract.status}).")

        now = self.clock.now()
        if contract.tenant_sign_deadline is not None and now > contract.tenant_sign_deadline:
            raise ExpiredError("Signing deadline has passed.", deadline=contract.tenant_sign_deadline)

        # 🔒 serialize activation per property
        prop = self.properties.lock(db, contract.property_id)
        if self.contracts.active_for_property(db, contract.property_id, exclude_contract_id=contract.id):
            raise ConflictError(ACTIVE_CONTRACT_EXISTS)
        assert_transition(contract.status, ContractStatus.active)

        was_modification = contract.status == ContractStatus.modification_in_progress.value

        contract.tenant_signature = signature
        contract.tenant_signed_at = now
        contract.status = ContractStatus.active.value
        contract.updated_at = now
        self.properties.set_availability(db, prop, PropertyAvailability.rented, now=now)

        if was_modification:
            req = self.requests.latest_with_status(
                db,
                contract.id,
                ChangeRequestKind.modification,
                ChangeRequestStatus.modification_in_progress,
            )
            if req is not None:
                req.status = ChangeRequestStatus.completed.value
                req.updated_at = now

        commit_or_conflict(db, ACTIVE_CONTRACT_EXISTS)
        db.refresh(contract)

        logger.info(
            "contract_activated",
            extra={"contract_id": str(contract.id), "property_id": str(contract.property_id)},
        )
        self.notifications.notify(
            db,
            user_id=contract.owner_id,
            title="Contract active",
            message="The tenant signed the contract. It is now active and the property is marked as rented.",
            type=NotificationType.contract_active,
            related_id=contract.id,
        )
        return contract

    # ---------------------------
    # OWNER EDITS
    # ---------------------------

    def modify_contract_draft(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        contract_data: Dict[str, Any],
    ) -> Contract:
        """
        Owner rewrites the document before the tenant has signed.
        Any owner signature is discarded; no version is archived.
        """
        if not isinstance(contract_data, dict) or not contract_data:
            raise ValidationError("contract_data must be a non-empty object.")

        contract = self.contracts.get_for_update(db, contract_id)
        contract_policy.require_owner(contract, actor_id)
        if contract.tenant_signature is not None:
            raise ConflictError("Cannot modify a contract after the tenant has signed.")
        assert_transition(contract.status, ContractStatus.draft)

        now = self.clock.now()
        contract.contract_data = dict(contract_data)
        self._clear_signatures(contract)
        contract.status = ContractStatus.draft.value
        contract.updated_at = now
        db.commit()
        db.refresh(contract)

        logger.info("contract_draft_modified", extra={"contract_id": str(contract.id)})
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="Contract updated",
            message="The owner updated the contract draft. Any previous signature was cleared.",
            type=NotificationType.contract_modified,
            related_id=contract.id,
        )
        return contract

    def apply_modification(
        self,
        db: Session,
        *,
        contract_id: uuid.UUID,
        actor_id: str,
        modification_request_id: uuid.UUID,
        modifications: Dict[str, Any],
        owner_signature: Optional[str] = None,
    ) -> Contract:
        """
        Owner edits the contract inside the window the tenant granted.

        Rules:
        - contract is waiting_for_modification
        - request belongs to the contract, is a modification, is accepted
        - window (modification_deadline) has not passed

        Atomically archives the current terms as the next version, applies
        only the agreed fields and resets signatures. Without an owner
        signature the contract returns to draft; with one it moves to
        modification_in_progress and waits for the tenant.
        """
        if owner_signature is not None and not owner_signature.strip():
            raise ValidationError("Owner signature must not be blank.")
        if not isinstance(modifications, dict):
            raise ValidationError("modifications must be an object.")

        contract = self.contracts.get_for_update(db, contract_id)
        contract_policy.require_owner(contract, actor_id)
        if contract.status != ContractStatus.waiting_for_modification.value:
            raise ConflictError("Contract is not open for modification.")

        req = self.requests.get_for_update(db, modification_request_id)
        if req.contract_id != contract.id or req.kind != ChangeRequestKind.modification.value:
            raise ValidationError("Modification request does not belong to this contract.")
        if req.status != ChangeRequestStatus.accepted.value:
            raise ConflictError(f"Modification request is {req.status}, not accepted.")

        now = self.clock.now()
        if req.modification_deadline is not None and now > req.modification_deadline:
            raise ExpiredError("Modification deadline has passed.", deadline=req.modification_deadline)

        target = ContractStatus.modification_in_progress if owner_signature else ContractStatus.draft
        assert_transition(contract.status, target)

        version = self.contracts.snapshot(db, contract, reason=req.modification_reason)
        new_data, written = apply_modifications(
            contract.contract_data, modifications, req.fields_to_modify or []
        )

        contract.contract_data = new_data
        self._clear_signatures(contract)
        contract.modification_summary = (
            f"Modified: version {version.version} archived - {req.modification_reason}"
        )
        contract.updated_at = now

        if owner_signature:
            deadline = now + timedelta(days=self.settings.tenant_sign_window_days)
            contract.owner_signature = owner_signature
            contract.owner_signed_at = now
            contract.tenant_sign_deadline = deadline
            contract.status = ContractStatus.modification_in_progress.value
            req.status = ChangeRequestStatus.modification_in_progress.value
            message = (
                "The owner applied the agreed changes and signed the new version. "
                f"Please review and sign before {_fmt_deadline(deadline)}."
            )
        else:
            contract.status = ContractStatus.draft.value
            req.status = ChangeRequestStatus.completed.value
            message = "The owner applied the agreed changes. The new version must be signed again by both parties."
        req.updated_at = now

        db.commit()
        db.refresh(contract)

        logger.info(
            "contract_modification_applied",
            extra={
                "contract_id": str(contract.id),
                "request_id": str(req.id),
                "archived_version": version.version,
                "fields_written": written,
                "status": contract.status,
            },
        )
        self.notifications.notify(
            db,
            user_id=contract.tenant_id,
            title="Contract modified - signature required",
            message=message,
            type=NotificationType.contract_modified,
            related_id=contract.id,
        )
        return contract

    # ---------------------------
    # EXPORT
    # ---------------------------

    def export_contract(self, db: Session, *, contract_id: uuid.UUID, actor_id: str) -> Dict[str, str]:
        """
        Download descriptor for a contract in force. PDF rendering itself is
        served elsewhere; this only names it.
        """
        contract = self.contracts.get(db, contract_id)
        contract_policy.enforce_download(contract, actor_id)

        title = (contract.contract_data or {}).get("propertyTitle") or "property"
        filename = f"contrat_{contract.id}_{'_'.join(str(title).split())}.pdf"
        return {
            "downloadUrl": f"{self.settings.contract_pdf_base_path}/{contract.id}/pdf",
            "filename": filename,
        }

    # ---------------------------
    # HELPERS
    # ---------------------------

    @staticmethod
    def _clear_signatures(contract: Contract) -> None:
        contract.owner_signature = None
        contract.tenant_signature = None
        contract.owner_signed_at = None
        contract.tenant_signed_at = None
        contract.tenant_sign_deadline = None
