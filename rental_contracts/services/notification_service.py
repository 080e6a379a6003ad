# rental_contracts/services/notification_service.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rental_contracts.core.errors import AuthorizationError, NotFoundError
from rental_contracts.models.enums import NotificationType
from rental_contracts.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Notification sink. Delivery is fire-and-forget: notify() is called after
    the transition committed, and a failure here is logged, never raised.
    """

    def notify(
        self,
        db: Session,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        related_id: Optional[object] = None,
    ) -> Optional[Notification]:
        row = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type.value,
            related_id=str(related_id) if related_id is not None else None,
        )
        try:
            db.add(row)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "notification_failed",
                extra={"user_id": user_id, "type": type.value, "related_id": str(related_id)},
            )
            return None
        return row

    # ---------------------------
    # POLLING
    # ---------------------------

    def list_for_user(self, db: Session, user_id: str, *, unread_only: bool = False) -> List[Notification]:
        q = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            q = q.where(Notification.read.is_(False))
        return list(db.execute(q.order_by(Notification.created_at.desc())).scalars().all())

    def mark_read(self, db: Session, *, notification_id: uuid.UUID, user_id: str) -> Notification:
        row = db.get(Notification, notification_id)
        if row is None:
            raise NotFoundError("Notification", notification_id)
        if row.user_id != user_id:
            raise AuthorizationError("Notification belongs to another user.")
        row.read = True
        db.commit()
        db.refresh(row)
        return row
