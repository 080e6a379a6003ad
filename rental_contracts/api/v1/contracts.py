# rental_contracts/api/v1/contracts.py
from __future__ import annotations

import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Query
from sqlalchemy.orm import Session

from rental_contracts.core.auth_deps import get_current_principal
from rental_contracts.core.errors import ContractLifecycleError
from rental_contracts.db.session import get_db
from rental_contracts.models.contract import Contract
from rental_contracts.models.enums import UserRole
from rental_contracts.policies.rbac import Principal, require_role
from rental_contracts.schemas.change_requests import (
    ChangeRequestListResponse,
    ChangeRequestResponse,
    ModificationRequestPayload,
    TerminationRequestPayload,
)
from rental_contracts.schemas.contracts import (
    ApplyModificationRequest,
    ContractCreateRequest,
    ContractDownloadResponse,
    ContractListResponse,
    ContractResponse,
    ContractUpdateRequest,
    ContractVersionListResponse,
    ExpireCheckResponse,
    SignContractRequest,
)
from rental_contracts.services.audit_service import AuditAction, AuditService
from rental_contracts.services.change_request_service import ChangeRequestService
from rental_contracts.services.contract_lifecycle_service import ContractLifecycleService
from rental_contracts.services.expiration_sweeper import ExpirationSweeper

router = APIRouter(prefix="/contracts")


def _iso(dt):
    return dt.isoformat() if dt else None


def _uuid(raw: str, name: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be UUID.")


def contract_to_resp(c: Contract) -> dict:
    return {
        "contractId": str(c.id),
        "offerId": str(c.offer_id),
        "propertyId": str(c.property_id),
        "ownerId": c.owner_id,
        "tenantId": c.tenant_id,
        "status": c.status,
        "contractData": c.contract_data or {},
        "ownerSigned": c.owner_signature is not None,
        "tenantSigned": c.tenant_signature is not None,
        "ownerSignedAtIso": _iso(c.owner_signed_at),
        "tenantSignedAtIso": _iso(c.tenant_signed_at),
        "tenantSignDeadlineIso": _iso(c.tenant_sign_deadline),
        "modificationSummary": c.modification_summary,
        "terminationReason": c.termination_reason,
        "terminatedBy": c.terminated_by,
        "terminatedAtIso": _iso(c.terminated_at),
        "createdAtIso": _iso(c.created_at),
        "updatedAtIso": _iso(c.updated_at),
    }


def change_request_to_resp(r) -> dict:
    return {
        "requestId": str(r.id),
        "contractId": str(r.contract_id),
        "kind": r.kind,
        "status": r.status,
        "requestedBy": r.requester_id,
        "fieldsToModify": r.fields_to_modify,
        "modificationReason": r.modification_reason,
        "requestedChanges": r.requested_changes,
        "modificationDeadlineIso": _iso(r.modification_deadline),
        "reason": r.reason,
        "detailedReason": r.detailed_reason,
        "tenantResponse": r.tenant_response,
        "respondedAtIso": _iso(r.responded_at),
        "createdAtIso": _iso(r.created_at),
    }


def _audit(
    db: Session,
    request: Request,
    principal: Principal,
    *,
    contract_id,
    action: str,
    details: Dict[str, Any],
) -> None:
    AuditService().write(
        db,
        contract_id=str(contract_id) if contract_id else None,
        actor_id=principal.user_id,
        actor_role=principal.role.value,
        action=action,
        request_id=getattr(request.state, "request_id", None),
        details=details,
    )


# ─────────────────────────────────────────────
# CONTRACTS
# ─────────────────────────────────────────────

@router.get("", response_model=ContractListResponse)
async def list_contracts(
    ownerOnly: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = ContractLifecycleService().list_contracts(db, actor_id=principal.user_id, owner_only=ownerOnly)
    return {"contracts": [contract_to_resp(c) for c in rows]}


@router.post("", response_model=ContractResponse, status_code=201)
async def create_contract(
    payload: ContractCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    offer_id = _uuid(payload.offerId, "offerId")
    try:
        contract = ContractLifecycleService().create_contract(
            db,
            offer_id=offer_id,
            actor_id=principal.user_id,
            contract_data=payload.contractData,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=contract.id, action=AuditAction.CONTRACT_CREATED,
           details={"offerId": str(offer_id)})
    return contract_to_resp(contract)


# literal path before /{contractId}
@router.post("/expire-check", response_model=ExpireCheckResponse)
async def expire_check(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Runs one sweeper tick on demand (same work the background loop does).
    """
    result = ExpirationSweeper().run_once(db)
    _audit(db, request, principal, contract_id=None, action=AuditAction.EXPIRATION_SWEEP_RUN,
           details={"expired": result.expired, "reverted": result.reverted})
    return {
        "expired": result.expired,
        "reverted": result.reverted,
        "expiredContractIds": result.expired_contract_ids,
        "revertedContractIds": result.reverted_contract_ids,
    }


@router.get("/{contractId}", response_model=ContractResponse)
async def get_contract(
    contractId: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        contract = ContractLifecycleService().get_contract(db, contract_id=cid, actor_id=principal.user_id)
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return contract_to_resp(contract)


@router.put("/{contractId}", response_model=ContractResponse)
async def modify_contract_draft(
    contractId: str,
    payload: ContractUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        contract = ContractLifecycleService().modify_contract_draft(
            db, contract_id=cid, actor_id=principal.user_id, contract_data=payload.contractData
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=cid, action=AuditAction.CONTRACT_DRAFT_MODIFIED,
           details={"keys": sorted(payload.contractData.keys())})
    return contract_to_resp(contract)


@router.put("/{contractId}/sign", response_model=ContractResponse)
async def sign_contract(
    contractId: str,
    payload: SignContractRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    signer_role = UserRole(payload.signatureType)
    try:
        require_role(principal, signer_role)
        contract = ContractLifecycleService().sign_contract(
            db,
            contract_id=cid,
            actor_id=principal.user_id,
            signer_role=signer_role,
            signature=payload.signatureData,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    action = (
        AuditAction.CONTRACT_SIGNED_OWNER if signer_role == UserRole.OWNER
        else AuditAction.CONTRACT_SIGNED_TENANT
    )
    # signature blobs never go into the audit trail
    _audit(db, request, principal, contract_id=cid, action=action, details={"status": contract.status})
    return contract_to_resp(contract)


@router.post("/{contractId}/apply-modification", response_model=ContractResponse)
async def apply_modification(
    contractId: str,
    payload: ApplyModificationRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    rid = _uuid(payload.modificationRequestId, "modificationRequestId")
    try:
        contract = ContractLifecycleService().apply_modification(
            db,
            contract_id=cid,
            actor_id=principal.user_id,
            modification_request_id=rid,
            modifications=payload.modifications,
            owner_signature=payload.ownerSignature,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=cid, action=AuditAction.CONTRACT_MODIFICATION_APPLIED,
           details={"modificationRequestId": str(rid), "status": contract.status})
    return contract_to_resp(contract)


@router.get("/{contractId}/versions", response_model=ContractVersionListResponse)
async def list_contract_versions(
    contractId: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        versions = ContractLifecycleService().list_contract_versions(
            db, contract_id=cid, actor_id=principal.user_id
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return {
        "contractId": str(cid),
        "versions": [
            {
                "id": v["id"],
                "contractId": str(v["contract_id"]),
                "version": v["version"],
                "status": v["status"],
                "contractData": v["contract_data"] or {},
                "ownerSigned": v["owner_signature"] is not None,
                "tenantSigned": v["tenant_signature"] is not None,
                "ownerSignedAtIso": _iso(v["owner_signed_at"]),
                "tenantSignedAtIso": _iso(v["tenant_signed_at"]),
                "modificationReason": v["modification_reason"],
                "createdAtIso": _iso(v["created_at"]),
                "isCurrent": v["is_current"],
            }
            for v in versions
        ],
    }


@router.get("/{contractId}/download", response_model=ContractDownloadResponse)
async def download_contract(
    contractId: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        descriptor = ContractLifecycleService().export_contract(db, contract_id=cid, actor_id=principal.user_id)
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=cid, action=AuditAction.CONTRACT_EXPORTED,
           details={"filename": descriptor["filename"]})
    return descriptor


# ─────────────────────────────────────────────
# CHANGE REQUESTS (owner side)
# ─────────────────────────────────────────────

@router.post("/{contractId}/request-modification", response_model=ChangeRequestResponse, status_code=201)
async def request_modification(
    contractId: str,
    payload: ModificationRequestPayload,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        req = ChangeRequestService().request_modification(
            db,
            contract_id=cid,
            actor_id=principal.user_id,
            modification_reason=payload.modificationReason,
            fields_to_modify=payload.fieldsToModify,
            requested_changes=payload.requestedChanges,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=cid, action=AuditAction.MODIFICATION_REQUESTED,
           details={"requestId": str(req.id), "fields": req.fields_to_modify})
    return change_request_to_resp(req)


@router.post("/{contractId}/request-termination", response_model=ChangeRequestResponse, status_code=201)
async def request_termination(
    contractId: str,
    payload: TerminationRequestPayload,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        req = ChangeRequestService().request_termination(
            db,
            contract_id=cid,
            actor_id=principal.user_id,
            reason=payload.reason,
            detailed_reason=payload.detailedReason,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    _audit(db, request, principal, contract_id=cid, action=AuditAction.TERMINATION_REQUESTED,
           details={"requestId": str(req.id)})
    return change_request_to_resp(req)


@router.get("/{contractId}/pending-requests", response_model=ChangeRequestListResponse)
async def list_pending_requests(
    contractId: str,
    includeResolved: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    cid = _uuid(contractId, "contractId")
    try:
        rows = ChangeRequestService().list_pending_requests(
            db, contract_id=cid, actor_id=principal.user_id, include_resolved=includeResolved
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return {"requests": [change_request_to_resp(r) for r in rows]}
