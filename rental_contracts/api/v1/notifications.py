# rental_contracts/api/v1/notifications.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from rental_contracts.core.auth_deps import get_current_principal
from rental_contracts.core.errors import ContractLifecycleError
from rental_contracts.db.session import get_db
from rental_contracts.models.notification import Notification
from rental_contracts.policies.rbac import Principal
from rental_contracts.schemas.notifications import NotificationListResponse, NotificationResponse
from rental_contracts.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications")


def _to_resp(n: Notification) -> dict:
    return {
        "notificationId": str(n.id),
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "relatedId": n.related_id,
        "read": n.read,
        "createdAtIso": n.created_at.isoformat(),
    }


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unreadOnly: bool = Query(False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = NotificationService().list_for_user(db, principal.user_id, unread_only=unreadOnly)
    return {"notifications": [_to_resp(n) for n in rows]}


@router.put("/{notificationId}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notificationId: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    try:
        nid = uuid.UUID(notificationId)
    except ValueError:
        raise HTTPException(status_code=400, detail="notificationId must be UUID.")

    try:
        row = NotificationService().mark_read(db, notification_id=nid, user_id=principal.user_id)
    except ContractLifecycleError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _to_resp(row)
