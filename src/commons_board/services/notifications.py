"""Notification dispatcher.

Writes addressed, typed notification rows. Rows are the hand-off point for
push/SMS delivery, which lives outside this service. ``sender`` keeps the
stable identity of whoever caused the notification; the human readable
message uses the sender's display name as resolved at write time.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from commons_board.core.errors import NotFoundError
from commons_board.db.time import as_utc, utcnow
from commons_board.models import Discussion, Notification
from commons_board.models.discussion import ANONYMOUS
from commons_board.models.notification import NotificationPriority, NotificationType
from commons_board.services.identity import resolve_display_name
from commons_board.services.points import leaderboard

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "System"

HIGH_PRIORITY_TYPES = frozenset({NotificationType.HELP_OFFERED, NotificationType.HELP_ACCEPTED})
HIGH_PRIORITY_RANKS = 3

# type -> (title, message); ``{sender}`` and ``{post}`` are filled in at write time.
TEMPLATES: dict[str, tuple[str, str]] = {
    NotificationType.POST_LIKED: ("New Like", '{sender} liked your post "{post}"'),
    NotificationType.COMMENT_ADDED: ("New Comment", '{sender} commented on your post "{post}"'),
    NotificationType.POLL_VOTED: ("New Vote", '{sender} voted on your poll "{post}"'),
    NotificationType.EVENT_RSVP: ("New RSVP", '{sender} is attending your event "{post}"'),
    NotificationType.VOLUNTEER_SIGNUP: (
        "New Volunteer",
        '{sender} signed up to volunteer for "{post}"',
    ),
    NotificationType.DONATION_MADE: ("New Donation", '{sender} donated to your campaign "{post}"'),
    NotificationType.HELP_OFFERED: ("Help Offered", '{sender} offered to help with "{post}"'),
    NotificationType.HELP_ACCEPTED: (
        "Help Accepted",
        '{sender} accepted your help offer for "{post}"',
    ),
    NotificationType.HELP_DECLINED: (
        "Help Declined",
        '{sender} declined your help offer for "{post}"',
    ),
    NotificationType.HELP_COMPLETED: (
        "Help Completed",
        '{sender} marked your help as completed for "{post}"',
    ),
    NotificationType.CONTENT_REMOVED: (
        "Content Removed",
        'Your post "{post}" was removed by a moderator',
    ),
    NotificationType.REPORT_REVIEWED: (
        "Report Reviewed",
        'Your report on "{post}" was reviewed: {outcome}',
    ),
}


def default_priority(notification_type: str, data: dict[str, Any] | None = None) -> str:
    if notification_type in HIGH_PRIORITY_TYPES:
        return NotificationPriority.HIGH.value
    if notification_type == NotificationType.LEADERBOARD_RANK and data:
        if int(data.get("rank", HIGH_PRIORITY_RANKS + 1)) <= HIGH_PRIORITY_RANKS:
            return NotificationPriority.HIGH.value
    return NotificationPriority.NORMAL.value


def notify(
    db: Session,
    *,
    recipient: str,
    sender: str,
    notification_type: str,
    title: str,
    message: str,
    discussion_id: int | None = None,
    priority: str | None = None,
    data: dict[str, Any] | None = None,
) -> Notification | None:
    """Persist one notification; returns None when there is nobody to tell.

    Nothing is written when the recipient is the sender or is ``Anonymous``.
    The caller commits.
    """
    if recipient == sender or recipient == ANONYMOUS or not recipient:
        return None

    notification = Notification(
        recipient=recipient,
        sender=sender,
        type=NotificationType(notification_type).value,
        discussion_id=discussion_id,
        title=title,
        message=message,
        data=data,
        priority=priority or default_priority(notification_type, data),
    )
    db.add(notification)
    db.flush()
    return notification


def notify_event(
    db: Session,
    *,
    recipient: str,
    sender: str,
    notification_type: str,
    discussion_id: int | None = None,
    data: dict[str, Any] | None = None,
    priority: str | None = None,
) -> Notification | None:
    """Render the standard title and message for ``notification_type`` and store it."""
    if recipient == sender or recipient == ANONYMOUS:
        return None

    post_title = "a discussion"
    if discussion_id is not None:
        discussion = db.get(Discussion, discussion_id)
        if discussion is not None:
            post_title = discussion.title

    title, template = TEMPLATES[notification_type]
    message = template.format(
        sender=resolve_display_name(db, sender),
        post=post_title,
        outcome=(data or {}).get("outcome", ""),
    )
    return notify(
        db,
        recipient=recipient,
        sender=sender,
        notification_type=notification_type,
        title=title,
        message=message,
        discussion_id=discussion_id,
        priority=priority,
        data=data,
    )


def list_for(
    db: Session,
    recipient: str,
    *,
    unread_only: bool = False,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Notification], int]:
    """Return one page of a recipient's notifications (newest first) and the total count."""
    stmt = select(Notification).where(Notification.recipient == recipient)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(
        stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((max(page, 1) - 1) * limit)
        .limit(limit)
    )
    return list(rows), total


def unread_count(db: Session, recipient: str) -> int:
    return db.scalar(
        select(func.count()).select_from(Notification).where(
            Notification.recipient == recipient,
            Notification.read.is_(False),
        )
    ) or 0


def mark_read(db: Session, recipient: str, ids: list[int] | None = None) -> int:
    """Mark the given notifications (all of them when ``ids`` is empty) as read."""
    stmt = update(Notification).where(
        Notification.recipient == recipient,
        Notification.read.is_(False),
    )
    if ids:
        stmt = stmt.where(Notification.id.in_(ids))
    result = db.execute(stmt.values(read=True).execution_options(synchronize_session=False))
    db.commit()
    return result.rowcount


def delete_for(db: Session, recipient: str, notification_id: int) -> None:
    """Delete one of ``recipient``'s notifications.

    Raises:
        NotFoundError: If no such notification is addressed to ``recipient``.
    """
    result = db.execute(
        delete(Notification)
        .where(Notification.id == notification_id, Notification.recipient == recipient)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise NotFoundError(f"Notification {notification_id} not found")
    db.commit()


def cleanup(
    db: Session,
    days_old: int = 30,
    *,
    read_only: bool = False,
    now: datetime | None = None,
) -> int:
    """Delete notifications older than ``days_old`` days; returns how many went."""
    now = as_utc(now) if now is not None else utcnow()
    cutoff = now - timedelta(days=days_old)
    stmt = delete(Notification).where(Notification.created_at < cutoff)
    if read_only:
        stmt = stmt.where(Notification.read.is_(True))
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    logger.info(
        "Cleaned up %d %snotifications older than %d days",
        result.rowcount,
        "read " if read_only else "",
        days_old,
    )
    return result.rowcount


def notify_leaderboard_top(
    db: Session,
    period: str = "weekly",
    top: int = 3,
    now: datetime | None = None,
) -> int:
    """Tell the current top ``top`` identities of ``period`` about their rank."""
    sent = 0
    for entry in leaderboard(db, period, limit=top, now=now):
        if entry.points <= 0:
            continue
        data = {"rank": entry.rank, "period": period, "points": entry.points}
        created = notify(
            db,
            recipient=entry.identity,
            sender=SYSTEM_SENDER,
            notification_type=NotificationType.LEADERBOARD_RANK,
            title="Leaderboard Update",
            message=(
                f"You're now ranked #{entry.rank} on the {period} leaderboard "
                f"with {entry.points} points!"
            ),
            data=data,
        )
        if created is not None:
            sent += 1
    db.commit()
    logger.info("Sent %d %s leaderboard notifications", sent, period)
    return sent
