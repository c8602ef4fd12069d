"""SQLAlchemy models for discussions and the rows their interactions write.

A discussion is a tagged union: the ``type`` column is the polymorphic
discriminant of a single-table hierarchy and every variant maps only its own
payload columns. Membership-style state (likes, poll votes, RSVPs, helpers)
lives in child tables keyed so that the store itself rejects duplicates.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commons_board.db.session import Base
from commons_board.db.time import utcnow

ANONYMOUS = "Anonymous"


class DiscussionType(StrEnum):
    """Closed set of discussion variants."""

    POLL = "Poll"
    EVENT = "Event"
    DONATION = "Donation"
    VOLUNTEER = "Volunteer"
    REPORT = "Report"


class DiscussionStatus(StrEnum):
    ACTIVE = "active"
    FLAGGED = "flagged"
    REMOVED = "removed"


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class HelperStatus(StrEnum):
    OFFERED = "offered"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


class ReceiptKind(StrEnum):
    """Interactions whose points are only ever awarded once per identity."""

    LIKE = "like"
    RSVP = "rsvp"
    HELP = "help"


def _sql_in(values: type[StrEnum]) -> str:
    return ", ".join(f"'{member.value}'" for member in values)


class Discussion(Base):
    """Community post shared by all variants.

    Concrete rows are always one of the subclasses below; the base class is
    never instantiated directly.
    """

    __tablename__ = "discussion"
    __table_args__ = (
        CheckConstraint(f"type IN ({_sql_in(DiscussionType)})", name="ck_discussion_type"),
        CheckConstraint(f"status IN ({_sql_in(DiscussionStatus)})", name="ck_discussion_status"),
        CheckConstraint("like_count >= 0", name="ck_discussion_like_count"),
        Index("ix_discussion_location_type", "location", "type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Display name snapshot taken at creation; never used for authorization.
    author: Mapped[str] = mapped_column(Text, nullable=False, default=ANONYMOUS)
    author_identity: Mapped[str] = mapped_column(Text, nullable=False, default=ANONYMOUS)
    location: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    priority: Mapped[str] = mapped_column(Text, nullable=False, default=Priority.NORMAL.value)
    # Paths returned by the external upload service, stored verbatim.
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio: Mapped[str | None] = mapped_column(Text, nullable=True)

    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DiscussionStatus.ACTIVE.value,
    )
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flag_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    likes: Mapped[list[DiscussionLike]] = relationship(
        back_populates="discussion",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[list[Comment]] = relationship(
        back_populates="discussion",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.id",
    )
    receipts: Mapped[list[EngagementReceipt]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"polymorphic_on": "type"}

    @property
    def liked_by(self) -> list[str]:
        """Return the identities that currently like this discussion."""
        return sorted(like.identity for like in self.likes)


class PollDiscussion(Discussion):
    """Poll variant: ordered options, per-option tallies, one vote per identity."""

    poll_private: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    options: Mapped[list[PollOption]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PollOption.position",
    )
    votes: Mapped[list[PollVote]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"polymorphic_identity": DiscussionType.POLL.value}

    @property
    def option_labels(self) -> list[str]:
        return [option.label for option in self.options]

    @property
    def votes_by_option(self) -> dict[str, int]:
        return {option.label: option.votes for option in self.options}

    @property
    def vote_by_user(self) -> dict[str, str]:
        return {vote.voter_identity: vote.option for vote in self.votes}


class EventDiscussion(Discussion):
    """Event variant: a date plus an attendee set mirrored by ``attendee_count``."""

    event_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    event_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    attendee_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    participants: Mapped[list[DiscussionParticipant]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        overlaps="participants",
    )

    __mapper_args__ = {"polymorphic_identity": DiscussionType.EVENT.value}

    @property
    def attendees(self) -> list[str]:
        return sorted(p.identity for p in self.participants)


class VolunteerDiscussion(Discussion):
    """Volunteer call: like an event, but counted as volunteers with optional skills."""

    volunteers_needed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    skills: Mapped[str | None] = mapped_column(Text, nullable=True)
    volunteer_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    participants: Mapped[list[DiscussionParticipant]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        overlaps="participants",
    )

    __mapper_args__ = {"polymorphic_identity": DiscussionType.VOLUNTEER.value}

    @property
    def volunteers(self) -> list[str]:
        return sorted(p.identity for p in self.participants)


class DonationDiscussion(Discussion):
    """Fundraiser: ``current_amount`` is kept equal to the sum of its donations."""

    goal_amount: Mapped[float | None] = mapped_column(
        Numeric(14, 2, asdecimal=False),
        nullable=True,
    )
    current_amount: Mapped[float | None] = mapped_column(
        Numeric(14, 2, asdecimal=False),
        nullable=True,
    )

    donations: Mapped[list[Donation]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Donation.id",
    )

    __mapper_args__ = {"polymorphic_identity": DiscussionType.DONATION.value}


class IncidentDiscussion(Discussion):
    """Incident report that neighbours can offer help on until the author resolves it."""

    help_needed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    helper_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    helpers: Mapped[list[DiscussionHelper]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DiscussionHelper.id",
    )

    __mapper_args__ = {"polymorphic_identity": DiscussionType.REPORT.value}


VARIANTS: dict[str, type[Discussion]] = {
    DiscussionType.POLL.value: PollDiscussion,
    DiscussionType.EVENT.value: EventDiscussion,
    DiscussionType.DONATION.value: DonationDiscussion,
    DiscussionType.VOLUNTEER.value: VolunteerDiscussion,
    DiscussionType.REPORT.value: IncidentDiscussion,
}


class DiscussionLike(Base):
    """One row per identity that likes a discussion."""

    __tablename__ = "discussion_like"

    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Composite primary key prevents duplicate likes from the same identity.
    identity: Mapped[str] = mapped_column(Text, primary_key=True)

    discussion: Mapped[Discussion] = relationship(back_populates="likes")


class PollOption(Base):
    """A poll choice and its running tally."""

    __tablename__ = "poll_option"
    __table_args__ = (
        UniqueConstraint("discussion_id", "label", name="uq_poll_option_label"),
        CheckConstraint("votes >= 0", name="ck_poll_option_votes"),
    )

    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PollVote(Base):
    """The option an identity currently votes for."""

    __tablename__ = "poll_vote"

    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    voter_identity: Mapped[str] = mapped_column(Text, primary_key=True)
    option: Mapped[str] = mapped_column(Text, nullable=False)
    voted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class DiscussionParticipant(Base):
    """Attendee of an event or volunteer of a volunteer call."""

    __tablename__ = "discussion_participant"

    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    identity: Mapped[str] = mapped_column(Text, primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class Donation(Base):
    """A single contribution; repeat donations by the same identity are separate rows."""

    __tablename__ = "donation"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_donation_amount"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identity: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)
    donated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class DiscussionHelper(Base):
    """Help offer on an incident report with its own small state machine."""

    __tablename__ = "discussion_helper"
    __table_args__ = (
        UniqueConstraint("discussion_id", "identity", name="uq_discussion_helper_identity"),
        CheckConstraint(f"status IN ({_sql_in(HelperStatus)})", name="ck_discussion_helper_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        nullable=False,
    )
    identity: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=HelperStatus.OFFERED.value)
    offered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class Comment(Base):
    """Comment on a discussion.

    ``author_display_name`` is resolved once when the comment is written and
    is never refreshed, even if the commenter later renames.
    """

    __tablename__ = "comment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_identity: Mapped[str] = mapped_column(Text, nullable=False, default=ANONYMOUS)
    author_display_name: Mapped[str] = mapped_column(Text, nullable=False, default=ANONYMOUS)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=DiscussionStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    discussion: Mapped[Discussion] = relationship(back_populates="comments")


class EngagementReceipt(Base):
    """Marks that an identity already performed a points-bearing interaction once.

    Receipts outlive unlike/cancel/withdraw so toggling back never pays twice.
    """

    __tablename__ = "engagement_receipt"

    discussion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("discussion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    identity: Mapped[str] = mapped_column(Text, primary_key=True)
    kind: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
