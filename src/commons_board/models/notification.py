"""SQLAlchemy model for in-app notifications."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from commons_board.db.session import Base
from commons_board.db.time import utcnow


class NotificationType(StrEnum):
    HELP_OFFERED = "help_offered"
    HELP_ACCEPTED = "help_accepted"
    HELP_DECLINED = "help_declined"
    HELP_COMPLETED = "help_completed"
    COMMENT_ADDED = "comment_added"
    POST_LIKED = "post_liked"
    POLL_VOTED = "poll_voted"
    EVENT_RSVP = "event_rsvp"
    VOLUNTEER_SIGNUP = "volunteer_signup"
    DONATION_MADE = "donation_made"
    CONTENT_REMOVED = "content_removed"
    REPORT_REVIEWED = "report_reviewed"
    LEADERBOARD_RANK = "leaderboard_rank"


class NotificationPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Notification(Base):
    """Addressed, typed notification record.

    Rows are immutable once written except for ``read``. Push/SMS/email
    delivery happens elsewhere and only consumes these rows.
    """

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_read", "recipient", "read", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    sender: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    discussion_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # Type specific extras (rank/period/points, helper id).
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=NotificationPriority.NORMAL.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
