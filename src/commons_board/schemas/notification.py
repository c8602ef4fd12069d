# src/commons_board/schemas/notification.py
"""Notification-related Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    id: int
    recipient: str
    sender: str
    type: str
    discussion_id: int | None
    title: str
    message: str
    data: dict[str, Any] | None
    read: bool
    priority: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationPage(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    unread: int
    page: int


class UnreadCount(BaseModel):
    count: int


class MarkReadRequest(BaseModel):
    """Mark some (or, with no ids, all) of a recipient's notifications as read."""

    user: str = Field(..., min_length=1, description="Recipient identity")
    notification_ids: list[int] = Field(default_factory=list)


class MarkReadResponse(BaseModel):
    updated: int


class DeleteNotificationRequest(BaseModel):
    user: str = Field(..., min_length=1, description="Recipient identity")


class DeleteNotificationResponse(BaseModel):
    message: str
    unread: int
