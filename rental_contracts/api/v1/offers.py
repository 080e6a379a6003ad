# rental_contracts/api/v1/offers.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from rental_contracts.core.auth_deps import get_current_principal
from rental_contracts.core.errors import ContractLifecycleError
from rental_contracts.db.session import get_db
from rental_contracts.models.offer import Offer
from rental_contracts.policies.rbac import Principal
from rental_contracts.schemas.offers import OfferResponse
from rental_contracts.services.audit_service import AuditAction, AuditService
from rental_contracts.services.offer_service import OfferService

router = APIRouter(prefix="/offers")


def _to_resp(o: Offer) -> dict:
    return {
        "offerId": str(o.id),
        "propertyId": str(o.property_id),
        "ownerId": o.owner_id,
        "tenantId": o.tenant_id,
        "status": o.status,
        "startDate": o.start_date.isoformat(),
        "endDate": o.end_date.isoformat(),
        "monthlyRent": str(o.monthly_rent),
        "deposit": str(o.deposit) if o.deposit is not None else None,
    }


@router.put("/{offerId}/request-contract", response_model=OfferResponse)
async def request_contract(
    offerId: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Tenant asks the owner to draft a contract for an accepted offer.
    """
    try:
        oid = uuid.UUID(offerId)
    except ValueError:
        raise HTTPException(status_code=400, detail="offerId must be UUID.")

    try:
        offer = OfferService().request_contract(db, offer_id=oid, actor_id=principal.user_id)
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    AuditService().write(
        db,
        contract_id=None,
        actor_id=principal.user_id,
        actor_role=principal.role.value,
        action=AuditAction.CONTRACT_REQUESTED,
        request_id=getattr(request.state, "request_id", None),
        details={"offerId": str(oid)},
    )
    return _to_resp(offer)
