from __future__ import annotations
from typing import Optional
from pydantic import BaseModel


class OfferResponse(BaseModel):
    offerId: str
    propertyId: str
    ownerId: str
    tenantId: str
    status: str
    startDate: str
    endDate: str
    monthlyRent: str
    deposit: Optional[str] = None
