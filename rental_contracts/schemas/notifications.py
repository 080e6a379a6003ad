from __future__ import annotations
from typing import Optional, List
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    notificationId: str
    title: str
    message: str
    type: str
    relatedId: Optional[str] = None
    read: bool
    createdAtIso: str


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
