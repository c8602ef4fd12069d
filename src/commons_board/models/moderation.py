"""Models tracking user-filed moderation reports."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from commons_board.db.session import Base
from commons_board.db.time import utcnow


class ReportReason(StrEnum):
    INAPPROPRIATE_CONTENT = "Inappropriate Content"
    SPAM = "Spam"
    HARASSMENT = "Harassment"
    MISINFORMATION = "Misinformation"
    HATE_SPEECH = "Hate Speech"
    VIOLENCE = "Violence"
    OTHER = "Other"


class ReportStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REMOVED = "removed"
    RESOLVED = "resolved"
    REVOKED = "revoked"


# Statuses that block a new report against the same discussion.
OPEN_REPORT_STATUSES = (ReportStatus.PENDING.value, ReportStatus.APPROVED.value)
# Outcomes an administrator may choose for a pending report.
ADMIN_ACTIONS = (
    ReportStatus.APPROVED.value,
    ReportStatus.REJECTED.value,
    ReportStatus.REMOVED.value,
    ReportStatus.RESOLVED.value,
)

_OPEN_PREDICATE = text("status IN ('pending', 'approved')")


class ModerationReport(Base):
    """State machine for a single report: ``pending`` then exactly one terminal status.

    Reports are never deleted; the discussion reference is nulled if the
    author later deletes the discussion.
    """

    __tablename__ = "moderation_report"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'removed', 'resolved', 'revoked')",
            name="ck_moderation_report_status",
        ),
        # At most one open report per discussion, enforced by the store.
        Index(
            "uq_moderation_report_open",
            "discussion_id",
            unique=True,
            sqlite_where=_OPEN_PREDICATE,
            postgresql_where=_OPEN_PREDICATE,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discussion_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="SET NULL"),
        nullable=True,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[str | None] = mapped_column(Text, nullable=True)
    reporter_identity: Mapped[str] = mapped_column(Text, nullable=False)
    # Author of the reported discussion at filing time.
    reported_identity: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=ReportStatus.PENDING.value)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
