"""SQLAlchemy models for resident accounts and their points history."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commons_board.db.session import Base
from commons_board.db.time import utcnow


class UserAccount(Base):
    """Resident account keyed by its stable identity (the phone number).

    Accounts are provisioned by the external sign-up flow; this service reads
    them to resolve display names and keeps the points account on them.
    """

    __tablename__ = "user_account"

    identity: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Set by a moderator ban; banned_until is None for a permanent ban.
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    banned_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    banned_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # total_points == archived_points + sum(point_entry.points)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    archived_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    history: Mapped[list[PointEntry]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="PointEntry.id",
    )


class PointEntry(Base):
    """Append-only record of a single points award."""

    __tablename__ = "point_entry"
    __table_args__ = (Index("ix_point_entry_identity_awarded_at", "identity", "awarded_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identity: Mapped[str] = mapped_column(
        Text,
        ForeignKey("user_account.identity", ondelete="CASCADE"),
        nullable=False,
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    awarded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    account: Mapped[UserAccount] = relationship(back_populates="history")
