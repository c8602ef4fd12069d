# src/commons_board/api/v1/endpoints/notifications.py
"""Notification inbox endpoints for the Commons Board API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from commons_board.api.v1.dependencies import SessionDep
from commons_board.schemas.notification import (
    DeleteNotificationRequest,
    DeleteNotificationResponse,
    MarkReadRequest,
    MarkReadResponse,
    NotificationPage,
    UnreadCount,
)
from commons_board.services import notifications
from commons_board.services.discussions import parse_discussion_id

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationPage)
async def list_notifications(
    db: SessionDep,
    user: str = Query(..., min_length=1, description="Recipient identity"),
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    items, total = notifications.list_for(
        db,
        user,
        unread_only=unread_only,
        page=page,
        limit=limit,
    )
    return {
        "notifications": items,
        "total": total,
        "unread": notifications.unread_count(db, user),
        "page": page,
    }


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    db: SessionDep,
    user: str = Query(..., min_length=1),
) -> dict[str, int]:
    return {"count": notifications.unread_count(db, user)}


@router.put("/mark-read", response_model=MarkReadResponse)
async def mark_read(payload: MarkReadRequest, db: SessionDep) -> dict[str, int]:
    """Mark the listed notifications, or all of them when none are listed, as read."""
    updated = notifications.mark_read(db, payload.user, payload.notification_ids)
    return {"updated": updated}


@router.delete("/{notification_id}", response_model=DeleteNotificationResponse)
async def delete_notification(
    notification_id: str,
    payload: DeleteNotificationRequest,
    db: SessionDep,
) -> dict[str, Any]:
    """Delete one notification from the given recipient's inbox."""
    notifications.delete_for(
        db,
        payload.user,
        parse_discussion_id(notification_id, entity="Notification"),
    )
    return {
        "message": "Notification deleted successfully",
        "unread": notifications.unread_count(db, payload.user),
    }
