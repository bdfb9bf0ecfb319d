"""Notification service - the user's own notification feed"""

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Notification, User
from ...services.notification_service import create_notification
from .repository import NotificationRepository
from .schemas import NotificationCreate, NotificationResponse


def to_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        isRead=notification.is_read,
        createdAt=notification.created_at,
    )


class NotificationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def get_feed(self, user: User) -> tuple[list[Notification], int]:
        return self.repo.get_recent(self.db, user.id), self.repo.count_unread(self.db, user.id)

    def create(self, data: NotificationCreate, user: User) -> Notification:
        notification = create_notification(self.db, user.id, data.title, data.message, data.type)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def _get_own(self, notification_id: int, user: User) -> Notification:
        notification = self.repo.get_for_user(self.db, notification_id, user.id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    def set_read(self, notification_id: int, is_read: bool, user: User) -> Notification:
        notification = self._get_own(notification_id, user)
        notification.is_read = is_read
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def delete(self, notification_id: int, user: User) -> None:
        notification = self._get_own(notification_id, user)
        self.db.delete(notification)
        self.db.commit()

    def mark_all_read(self, user: User) -> int:
        return self.repo.mark_all_read(self.db, user.id)
