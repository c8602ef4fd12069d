# tests/services/test_points.py
from datetime import UTC, datetime, timedelta

import pytest

from commons_board.core.errors import ValidationError
from commons_board.models import PointEntry, UserAccount
from commons_board.services import points
from commons_board.services.points import PointAction, Period

NOW = datetime(2026, 10, 15, 13, 30, tzinfo=UTC)  # a Thursday


@pytest.mark.parametrize(
    ("period", "expected"),
    [
        (Period.DAILY, datetime(2026, 10, 15, tzinfo=UTC)),
        (Period.WEEKLY, datetime(2026, 10, 12, tzinfo=UTC)),
        (Period.MONTHLY, datetime(2026, 10, 1, tzinfo=UTC)),
        (Period.TOTAL, None),
    ],
)
def test_period_start(period, expected) -> None:
    assert points.period_start(period, NOW) == expected


def test_period_start_unknown() -> None:
    with pytest.raises(ValidationError) as exc:
        points.period_start("yearly", NOW)
    assert exc.value.field == "period"


def test_award_updates_total_and_history(db_session, alice) -> None:
    entry = points.award(db_session, alice.identity, PointAction.HELP_OFFERED, "Riverside")
    db_session.commit()

    assert entry.points == 15
    db_session.expire_all()
    account = db_session.get(UserAccount, alice.identity)
    assert account.total_points == 15
    assert [(e.action, e.location) for e in account.history] == [("HelpOffered", "Riverside")]


def test_award_skips_unknown_identity(db_session) -> None:
    assert points.award(db_session, "+15559999999", PointAction.POST_CREATED) is None
    assert points.award(db_session, "Anonymous", PointAction.POST_CREATED) is None
    assert db_session.query(PointEntry).count() == 0


def _entry(db_session, identity: str, amount: int, awarded_at: datetime) -> None:
    db_session.add(
        PointEntry(identity=identity, points=amount, action="PostCreated", awarded_at=awarded_at)
    )
    db_session.query(UserAccount).filter_by(identity=identity).update(
        {UserAccount.total_points: UserAccount.total_points + amount}
    )
    db_session.commit()


def test_period_leaderboard_ignores_old_entries(db_session, alice, bob) -> None:
    _entry(db_session, alice.identity, 50, NOW - timedelta(days=40))
    _entry(db_session, bob.identity, 5, NOW - timedelta(hours=1))

    total = points.leaderboard(db_session, Period.TOTAL, now=NOW)
    assert [(e.identity, e.points) for e in total] == [(alice.identity, 50), (bob.identity, 5)]

    monthly = points.leaderboard(db_session, Period.MONTHLY, now=NOW)
    assert [(e.identity, e.points) for e in monthly] == [(bob.identity, 5), (alice.identity, 0)]


def test_leaderboard_ties_sort_by_identity(db_session, make_user) -> None:
    make_user("+15550000009", "zed", total_points=7)
    make_user("+15550000008", "amy", total_points=7)

    board = points.leaderboard(db_session)
    assert [e.identity for e in board] == ["+15550000008", "+15550000009"]
    assert [e.rank for e in board] == [1, 2]


def test_leaderboard_skips_inactive_accounts(db_session, make_user) -> None:
    make_user("+15550000010", "gone", total_points=99, is_active=False)
    make_user("+15550000011", "here", total_points=1)

    assert [e.display_name for e in points.leaderboard(db_session)] == ["here"]


def test_user_standing_counts_strictly_higher(db_session, make_user) -> None:
    make_user("+15550000012", "a", total_points=20)
    make_user("+15550000013", "b", total_points=20)
    make_user("+15550000014", "c", total_points=5)

    standing = points.user_standing(db_session, "+15550000014")
    assert standing.rank == 3
    assert standing.participants == 3

    tied = points.user_standing(db_session, "+15550000013")
    assert tied.rank == 1


def test_user_standing_unknown(db_session) -> None:
    assert points.user_standing(db_session, "+15559999999") is None


def test_display_name_fallbacks(db_session, make_user) -> None:
    make_user("+15550000020", None, first_name="Dana", last_name="Reyes", total_points=2)
    make_user("+15550000021", "   ", total_points=1)

    names = [e.display_name for e in points.leaderboard(db_session)]
    assert names == ["Dana Reyes", "User 0021"]


def test_prune_history_keeps_totals(db_session, alice) -> None:
    _entry(db_session, alice.identity, 30, NOW - timedelta(days=400))
    _entry(db_session, alice.identity, 4, NOW - timedelta(days=3))

    pruned = points.prune_history(db_session, retention_days=365, now=NOW)
    assert pruned == 1

    db_session.expire_all()
    account = db_session.get(UserAccount, alice.identity)
    assert account.total_points == 34
    assert account.archived_points == 30
    assert sum(e.points for e in account.history) == 4
