"""Notification domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, max_length=50)


class NotificationUpdate(BaseModel):
    isRead: bool


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    isRead: bool
    createdAt: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unreadCount: int
