# rental_contracts/api/v1/change_requests.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Query
from sqlalchemy.orm import Session

from rental_contracts.api.v1.contracts import change_request_to_resp
from rental_contracts.core.auth_deps import get_current_principal
from rental_contracts.core.errors import ContractLifecycleError
from rental_contracts.db.session import get_db
from rental_contracts.models.enums import ChangeRequestKind
from rental_contracts.policies.rbac import Principal
from rental_contracts.schemas.change_requests import (
    ChangeRequestListResponse,
    ChangeRequestRespondPayload,
    ChangeRequestResponse,
)
from rental_contracts.services.audit_service import AuditAction, AuditService
from rental_contracts.services.change_request_service import ChangeRequestService

router = APIRouter()


@router.get("/change-requests/{requestId}", response_model=ChangeRequestResponse)
async def get_change_request(
    requestId: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    try:
        rid = uuid.UUID(requestId)
    except ValueError:
        raise HTTPException(status_code=400, detail="requestId must be UUID.")

    try:
        req = ChangeRequestService().get_request(db, request_id=rid, actor_id=principal.user_id)
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return change_request_to_resp(req)


@router.put("/change-requests/{requestId}/respond", response_model=ChangeRequestResponse)
async def respond_to_change_request(
    requestId: str,
    payload: ChangeRequestRespondPayload,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Tenant answers a pending modification or termination request.
    """
    try:
        rid = uuid.UUID(requestId)
    except ValueError:
        raise HTTPException(status_code=400, detail="requestId must be UUID.")

    try:
        req = ChangeRequestService().respond(
            db,
            request_id=rid,
            actor_id=principal.user_id,
            response=payload.response,
            tenant_comment=payload.tenantResponse,
        )
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    AuditService().write(
        db,
        contract_id=str(req.contract_id),
        actor_id=principal.user_id,
        actor_role=principal.role.value,
        action=AuditAction.CHANGE_REQUEST_ANSWERED,
        request_id=getattr(request.state, "request_id", None),
        details={"requestId": str(rid), "kind": req.kind, "response": payload.response.value},
    )
    return change_request_to_resp(req)


@router.get("/users/me/change-requests", response_model=ChangeRequestListResponse)
async def list_my_change_requests(
    kind: Optional[ChangeRequestKind] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = ChangeRequestService().list_user_requests(db, principal=principal, kind=kind)
    return {"requests": [change_request_to_resp(r) for r in rows]}
