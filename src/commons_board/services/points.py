"""Points ledger and leaderboard queries.

The ledger is append-only: every award writes one ``point_entry`` row and
bumps ``user_account.total_points`` in the store. Daily, weekly and monthly
totals are never stored; they are summed from the history for the date
range of the requested period.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session

from commons_board.core.errors import ValidationError
from commons_board.db.time import as_utc, utcnow
from commons_board.models import PointEntry, UserAccount
from commons_board.services.identity import display_name_for, get_account

logger = logging.getLogger(__name__)


class PointAction(StrEnum):
    POST_CREATED = "PostCreated"
    COMMENT_ADDED = "CommentAdded"
    HELP_OFFERED = "HelpOffered"
    POST_LIKED = "PostLiked"
    POLL_VOTED = "PollVoted"
    EVENT_RSVP = "EventRSVP"
    DONATION_MADE = "DonationMade"
    VOLUNTEER_SIGNUP = "VolunteerSignup"


REWARD_TABLE: dict[PointAction, int] = {
    PointAction.POST_CREATED: 10,
    PointAction.COMMENT_ADDED: 3,
    PointAction.HELP_OFFERED: 15,
    PointAction.POST_LIKED: 1,
    PointAction.POLL_VOTED: 5,
    PointAction.EVENT_RSVP: 8,
    PointAction.DONATION_MADE: 10,
    PointAction.VOLUNTEER_SIGNUP: 12,
}


class Period(StrEnum):
    TOTAL = "total"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    identity: str
    display_name: str
    points: int


@dataclass(frozen=True)
class Standing:
    identity: str
    display_name: str
    period: str
    points: int
    rank: int
    participants: int


def period_start(period: Period | str, now: datetime | None = None) -> datetime | None:
    """Return the UTC instant a period starts at, or None for ``total``."""
    try:
        period = Period(period)
    except ValueError as exc:
        raise ValidationError(f"Unknown period: {period}", field="period") from exc
    now = as_utc(now) if now is not None else utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period is Period.DAILY:
        return midnight
    if period is Period.WEEKLY:
        return midnight - timedelta(days=midnight.weekday())
    if period is Period.MONTHLY:
        return midnight.replace(day=1)
    return None


def award(
    db: Session,
    identity: str,
    action: PointAction | str,
    location: str | None = None,
) -> PointEntry | None:
    """Append an award to the history and add it to the stored total.

    The caller decides whether the award is due. Identities without an
    account (including ``Anonymous``) are skipped. Nothing is committed here.
    """
    action = PointAction(action)
    account = get_account(db, identity)
    if account is None:
        logger.warning("Skipping %s award for unknown identity %r", action, identity)
        return None

    points = REWARD_TABLE[action]
    entry = PointEntry(identity=identity, points=points, action=action.value, location=location)
    db.add(entry)
    db.execute(
        update(UserAccount)
        .where(UserAccount.identity == identity)
        .values(total_points=UserAccount.total_points + points)
        .execution_options(synchronize_session=False)
    )
    db.flush()
    return entry


def _period_totals(start: datetime | None):
    if start is None:
        return select(
            UserAccount.identity,
            UserAccount.total_points.label("points"),
        ).where(UserAccount.is_active.is_(True))
    summed = func.coalesce(func.sum(PointEntry.points), 0)
    return (
        select(UserAccount.identity, summed.label("points"))
        .select_from(UserAccount)
        .outerjoin(
            PointEntry,
            and_(
                PointEntry.identity == UserAccount.identity,
                PointEntry.awarded_at >= start,
            ),
        )
        .where(UserAccount.is_active.is_(True))
        .group_by(UserAccount.identity)
    )


def period_points(
    db: Session,
    identity: str,
    period: Period | str = Period.TOTAL,
    now: datetime | None = None,
) -> int:
    start = period_start(period, now)
    if start is None:
        account = db.get(UserAccount, identity)
        return account.total_points if account else 0
    return db.scalar(
        select(func.coalesce(func.sum(PointEntry.points), 0)).where(
            PointEntry.identity == identity,
            PointEntry.awarded_at >= start,
        )
    ) or 0


def leaderboard(
    db: Session,
    period: Period | str = Period.TOTAL,
    limit: int = 50,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Rank active accounts by points for ``period``; ties sort by identity."""
    totals = _period_totals(period_start(period, now)).subquery()
    rows = db.execute(
        select(UserAccount, totals.c.points)
        .join(totals, totals.c.identity == UserAccount.identity)
        .order_by(totals.c.points.desc(), UserAccount.identity.asc())
        .limit(limit)
    ).all()
    return [
        LeaderboardEntry(
            rank=index,
            identity=account.identity,
            display_name=display_name_for(account),
            points=int(points),
        )
        for index, (account, points) in enumerate(rows, start=1)
    ]


def user_standing(
    db: Session,
    identity: str,
    period: Period | str = Period.TOTAL,
    now: datetime | None = None,
) -> Standing | None:
    """Return points, rank and participant count for one identity, or None if unknown."""
    account = get_account(db, identity)
    if account is None:
        return None

    totals = _period_totals(period_start(period, now)).subquery()
    points = period_points(db, identity, period, now)
    higher = db.scalar(select(func.count()).select_from(totals).where(totals.c.points > points))
    participants = db.scalar(select(func.count()).select_from(totals))
    return Standing(
        identity=identity,
        display_name=display_name_for(account),
        period=Period(period).value,
        points=points,
        rank=(higher or 0) + 1,
        participants=participants or 0,
    )


def prune_history(db: Session, retention_days: int = 365, now: datetime | None = None) -> int:
    """Drop history older than ``retention_days``, folding it into ``archived_points``.

    ``total_points`` is left untouched so the ledger invariant
    ``total = archived + sum(history)`` keeps holding. Returns the number of
    entries pruned.
    """
    now = as_utc(now) if now is not None else utcnow()
    cutoff = now - timedelta(days=retention_days)

    stale = (
        select(PointEntry.identity, func.sum(PointEntry.points).label("points"))
        .where(PointEntry.awarded_at < cutoff)
        .group_by(PointEntry.identity)
    )
    for identity, points in db.execute(stale).all():
        db.execute(
            update(UserAccount)
            .where(UserAccount.identity == identity)
            .values(archived_points=UserAccount.archived_points + points)
            .execution_options(synchronize_session=False)
        )
    result = db.execute(
        delete(PointEntry)
        .where(PointEntry.awarded_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    pruned = result.rowcount
    db.commit()
    logger.info("Pruned %d point entries older than %s", pruned, cutoff.isoformat())
    return pruned
