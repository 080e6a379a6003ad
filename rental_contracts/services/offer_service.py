# rental_contracts/services/offer_service.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_contracts.core.clock import Clock, SystemClock
from rental_contracts.core.errors import AuthorizationError, NotFoundError, ValidationError
from rental_contracts.models.enums import NotificationType, OfferStatus
from rental_contracts.models.offer import Offer
from rental_contracts.models.property import Property
from rental_contracts.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.notifications = NotificationService()

    def get_offer(self, db: Session, offer_id: uuid.UUID) -> Offer:
        offer = db.get(Offer, offer_id)
        if offer is None:
            raise NotFoundError("Offer", offer_id)
        return offer

    def request_contract(self, db: Session, *, offer_id: uuid.UUID, actor_id: str) -> Offer:
        """
        Rules:
        - only the offer's tenant may ask for a contract
        - offer must be accepted
        - accepted -> contract_requested; both parties notified
        """
        offer = (
            db.execute(select(Offer).where(Offer.id == offer_id).with_for_update())
            .scalars()
            .one_or_none()
        )
        if offer is None:
            raise NotFoundError("Offer", offer_id)
        if offer.tenant_id != actor_id:
            raise AuthorizationError("Only the offer's tenant may request a contract.")
        if offer.status != OfferStatus.accepted.value:
            raise ValidationError("Offer must be accepted before requesting a contract.")

        offer.status = OfferStatus.contract_requested.value
        offer.updated_at = self.clock.now()
        db.commit()
        db.refresh(offer)

        logger.info("offer_contract_requested", extra={"offer_id": str(offer.id)})

        self.notifications.notify(
            db,
            user_id=offer.owner_id,
            title="Contract requested",
            message="A tenant is asking for a contract for their accepted offer.",
            type=NotificationType.contract_request,
            related_id=offer.id,
        )
        self.notifications.notify(
            db,
            user_id=offer.tenant_id,
            title="Contract requested",
            message="Your contract request was sent to the owner.",
            type=NotificationType.contract_request,
            related_id=offer.id,
        )
        return offer

    def contract_defaults(self, db: Session, offer: Offer) -> Dict[str, Any]:
        """
        Terms copied from the offer (and its property) into a new contract
        document. The caller's payload is merged on top.
        """
        prop = db.get(Property, offer.property_id)
        monthly_rent = str(offer.monthly_rent)
        defaults: Dict[str, Any] = {
            "startDate": offer.start_date.isoformat(),
            "endDate": offer.end_date.isoformat(),
            "monthlyRent": monthly_rent,
            "deposit": str(offer.deposit) if offer.deposit is not None else monthly_rent,
        }
        if offer.conditions:
            defaults["specialConditions"] = offer.conditions
        if prop is not None:
            defaults["propertyTitle"] = prop.title
            defaults["propertyAddress"] = prop.address
        return defaults
