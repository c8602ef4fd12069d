"""Data access helpers for working with discussions.

Every mutation of a counter or a membership set is a single SQL statement
executed by the store (``x = x + :delta``, conditional ``INSERT``/``DELETE``
/``UPDATE``), never a Python-side read, mutate and write back of the row.
None of these helpers commit; callers group them into one transaction.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from commons_board.models import (
    Board,
    Comment,
    Discussion,
    DiscussionHelper,
    DiscussionLike,
    DiscussionParticipant,
    Donation,
    EngagementReceipt,
    IncidentDiscussion,
    PollOption,
    PollVote,
)
from commons_board.models.discussion import DiscussionStatus

__all__ = ["DiscussionRepository"]


class DiscussionRepository:
    """Thin wrapper around store operations for discussion entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    # -- reads -----------------------------------------------------------------

    def get_by_id(self, discussion_id: int) -> Discussion | None:
        """Return a discussion (as its concrete variant) by identifier."""
        return self.session.get(Discussion, discussion_id, populate_existing=True)

    def list_visible(
        self,
        *,
        location: str | None = None,
        discussion_type: str | None = None,
        before: int | None = None,
        limit: int = 50,
    ) -> list[Discussion]:
        """Return discussions that are not removed, newest first."""
        stmt = select(Discussion).where(Discussion.status != DiscussionStatus.REMOVED.value)
        if location is not None:
            stmt = stmt.where(Discussion.location == location)
        if discussion_type is not None:
            stmt = stmt.where(Discussion.type == discussion_type)
        if before is not None:
            stmt = stmt.where(Discussion.id < before)
        stmt = stmt.order_by(Discussion.id.desc()).limit(limit)
        return list(self.session.scalars(stmt))

    def count_for_location(self, location: str) -> int:
        """Return the live number of discussions posted to ``location``."""
        return self.session.scalar(
            select(func.count()).select_from(Discussion).where(Discussion.location == location)
        ) or 0

    def comments_for(self, discussion_id: int) -> list[Comment]:
        return list(
            self.session.scalars(
                select(Comment).where(Comment.discussion_id == discussion_id).order_by(Comment.id)
            )
        )

    def _exists(self, stmt: Select[Any]) -> bool:
        return self.session.scalar(select(stmt.exists())) or False

    def has_like(self, discussion_id: int, identity: str) -> bool:
        return self._exists(
            select(DiscussionLike.identity).where(
                DiscussionLike.discussion_id == discussion_id,
                DiscussionLike.identity == identity,
            )
        )

    def current_vote(self, discussion_id: int, identity: str) -> str | None:
        return self.session.scalar(
            select(PollVote.option).where(
                PollVote.discussion_id == discussion_id,
                PollVote.voter_identity == identity,
            )
        )

    def is_participant(self, discussion_id: int, identity: str) -> bool:
        return self._exists(
            select(DiscussionParticipant.identity).where(
                DiscussionParticipant.discussion_id == discussion_id,
                DiscussionParticipant.identity == identity,
            )
        )

    def helper_for(self, discussion_id: int, identity: str) -> DiscussionHelper | None:
        return self.session.scalar(
            select(DiscussionHelper).where(
                DiscussionHelper.discussion_id == discussion_id,
                DiscussionHelper.identity == identity,
            )
        )

    def has_receipt(self, discussion_id: int, identity: str, kind: str) -> bool:
        return self._exists(
            select(EngagementReceipt.kind).where(
                EngagementReceipt.discussion_id == discussion_id,
                EngagementReceipt.identity == identity,
                EngagementReceipt.kind == kind,
            )
        )

    # -- atomic counter updates ------------------------------------------------

    def bump(
        self,
        model: type[Discussion],
        discussion_id: int,
        column: InstrumentedAttribute[Any],
        delta: int | float,
    ) -> int:
        """Apply ``column = column + delta`` in the store; negative results are refused.

        Returns the number of rows updated (0 when the guard rejected the change).
        """
        stmt = update(model).where(model.id == discussion_id)
        if delta < 0:
            stmt = stmt.where(column + delta >= 0)
        result = self.session.execute(
            stmt.values({column: column + delta}).execution_options(synchronize_session=False)
        )
        return result.rowcount

    def bump_option(self, discussion_id: int, label: str, delta: int) -> int:
        stmt = update(PollOption).where(
            PollOption.discussion_id == discussion_id,
            PollOption.label == label,
        )
        if delta < 0:
            stmt = stmt.where(PollOption.votes + delta >= 0)
        result = self.session.execute(
            stmt.values(votes=PollOption.votes + delta).execution_options(
                synchronize_session=False
            )
        )
        return result.rowcount

    def bump_board(self, title: str, delta: int) -> int:
        stmt = update(Board).where(Board.title == title)
        if delta < 0:
            stmt = stmt.where(Board.post_count + delta >= 0)
        result = self.session.execute(
            stmt.values(post_count=Board.post_count + delta).execution_options(
                synchronize_session=False
            )
        )
        return result.rowcount

    # -- atomic membership changes ---------------------------------------------

    def add_like(self, discussion_id: int, identity: str) -> None:
        """Insert a like row; a concurrent duplicate raises ``IntegrityError`` on flush."""
        self.session.add(DiscussionLike(discussion_id=discussion_id, identity=identity))
        self.session.flush()

    def remove_like(self, discussion_id: int, identity: str) -> bool:
        result = self.session.execute(
            delete(DiscussionLike).where(
                DiscussionLike.discussion_id == discussion_id,
                DiscussionLike.identity == identity,
            )
        )
        return result.rowcount == 1

    def add_vote(self, discussion_id: int, identity: str, option: str) -> None:
        self.session.add(
            PollVote(discussion_id=discussion_id, voter_identity=identity, option=option)
        )
        self.session.flush()

    def move_vote(self, discussion_id: int, identity: str, old: str, new: str) -> bool:
        """Compare-and-set the caller's vote from ``old`` to ``new``."""
        result = self.session.execute(
            update(PollVote)
            .where(
                PollVote.discussion_id == discussion_id,
                PollVote.voter_identity == identity,
                PollVote.option == old,
            )
            .values(option=new)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add_participant(self, discussion_id: int, identity: str) -> None:
        self.session.add(DiscussionParticipant(discussion_id=discussion_id, identity=identity))
        self.session.flush()

    def remove_participant(self, discussion_id: int, identity: str) -> bool:
        result = self.session.execute(
            delete(DiscussionParticipant).where(
                DiscussionParticipant.discussion_id == discussion_id,
                DiscussionParticipant.identity == identity,
            )
        )
        return result.rowcount == 1

    def add_donation(self, discussion_id: int, identity: str, amount: float) -> Donation:
        donation = Donation(discussion_id=discussion_id, identity=identity, amount=amount)
        self.session.add(donation)
        self.session.flush()
        return donation

    def add_helper(self, discussion_id: int, identity: str) -> DiscussionHelper:
        helper = DiscussionHelper(discussion_id=discussion_id, identity=identity)
        self.session.add(helper)
        self.session.flush()
        return helper

    def remove_helper(self, discussion_id: int, identity: str, statuses: tuple[str, ...]) -> bool:
        result = self.session.execute(
            delete(DiscussionHelper).where(
                DiscussionHelper.discussion_id == discussion_id,
                DiscussionHelper.identity == identity,
                DiscussionHelper.status.in_(statuses),
            )
        )
        return result.rowcount == 1

    def transition_helper(
        self,
        helper_id: int,
        discussion_id: int,
        allowed_from: tuple[str, ...],
        new_status: str,
    ) -> bool:
        """Compare-and-set a helper's status; False when it was not in ``allowed_from``."""
        result = self.session.execute(
            update(DiscussionHelper)
            .where(
                DiscussionHelper.id == helper_id,
                DiscussionHelper.discussion_id == discussion_id,
                DiscussionHelper.status.in_(allowed_from),
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add_receipt(self, discussion_id: int, identity: str, kind: str) -> bool:
        """Record the first occurrence of ``kind``; False if it was already recorded."""
        if self.has_receipt(discussion_id, identity, kind):
            return False
        self.session.add(
            EngagementReceipt(discussion_id=discussion_id, identity=identity, kind=kind)
        )
        self.session.flush()
        return True

    def close_help(self, discussion_id: int) -> bool:
        """Flip ``help_needed`` to false; False when it was already closed."""
        result = self.session.execute(
            update(IncidentDiscussion)
            .where(
                IncidentDiscussion.id == discussion_id,
                IncidentDiscussion.help_needed.is_(True),
            )
            .values(help_needed=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
