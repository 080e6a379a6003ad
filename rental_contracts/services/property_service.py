# rental_contracts/services/property_service.py
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_contracts.core.errors import NotFoundError
from rental_contracts.models.enums import PropertyAvailability
from rental_contracts.models.property import Property


class PropertyService:
    """
    The slice of the property service the contract engine needs:
    lock and flip availability.
    """

    def lock(self, db: Session, property_id: uuid.UUID) -> Property:
        """
        Lock the property row (FOR UPDATE). Serializes activation and creation
        per property.
        """
        prop = (
            db.execute(
                select(Property).where(Property.id == property_id).with_for_update()
            )
            .scalars()
            .one_or_none()
        )
        if prop is None:
            raise NotFoundError("Property", property_id)
        return prop

    def set_availability(self, db: Session, prop: Property, status: PropertyAvailability, *, now) -> None:
        # flushed with the caller's transition; no commit here
        prop.status = status.value
        prop.updated_at = now
