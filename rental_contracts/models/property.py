# rental_contracts/models/property.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from rental_contracts.db.base import Base
from rental_contracts.db.types import UTCDateTime
from rental_contracts.models.enums import PropertyAvailability


class Property(Base):
    """
    Listing owned by the property service. The contract service only reads it
    and flips `status` between available and rented; the row is also the lock
    anchor that serializes activation per property.
    """

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False, server_default="")

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        server_default=PropertyAvailability.available.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )
