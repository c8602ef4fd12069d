# tests/test_maintenance.py
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from commons_board.db.time import utcnow
from commons_board.models import Board, Notification, UserAccount
from commons_board.scripts import maintenance


@pytest.fixture()
def cli_sessions(engine, mocker):
    mocker.patch.object(maintenance, "SessionLocal", sessionmaker(bind=engine, autoflush=False))
    mocker.patch.object(maintenance, "configure_logging")


def test_reconcile_boards_command(cli_sessions, db_session, make_discussion) -> None:
    make_discussion("Event", location="Hilltop")
    db_session.query(Board).filter_by(title="Hilltop").update({Board.post_count: 4})
    db_session.commit()

    assert maintenance.main(["reconcile-boards"]) == 0

    db_session.expire_all()
    assert db_session.query(Board).filter_by(title="Hilltop").one().post_count == 1


def test_leaderboard_command(cli_sessions, db_session, make_user) -> None:
    make_user("+15550000041", "top", total_points=12)

    assert maintenance.main(["leaderboard", "--period", "daily"]) == 0
    assert maintenance.run_leaderboard("total", 3) == 1
    assert db_session.query(Notification).filter_by(type="leaderboard_rank").count() == 1


def test_parser_rejects_total_period() -> None:
    with pytest.raises(SystemExit):
        maintenance.build_parser().parse_args(["leaderboard", "--period", "total"])


def test_migrate_command(mocker) -> None:
    upgrade = mocker.patch.object(maintenance, "run_upgrade_head")
    mocker.patch.object(maintenance, "configure_logging")

    assert maintenance.main(["migrate"]) == 0
    upgrade.assert_called_once_with()


def test_migrations_build_schema(tmp_path) -> None:
    from sqlalchemy import create_engine, inspect

    from commons_board.scripts.migrate import run_upgrade_head

    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    run_upgrade_head(url)

    inspector = inspect(create_engine(url))
    tables = set(inspector.get_table_names())
    assert {
        "board",
        "discussion",
        "discussion_like",
        "poll_option",
        "poll_vote",
        "discussion_participant",
        "donation",
        "discussion_helper",
        "comment",
        "engagement_receipt",
        "moderation_report",
        "notification",
        "user_account",
        "point_entry",
    } <= tables
    columns = {column["name"] for column in inspector.get_columns("user_account")}
    assert {"ban_reason", "banned_by", "banned_at", "banned_until"} <= columns


def test_lift_bans_command(cli_sessions, db_session, make_user) -> None:
    now = utcnow()
    make_user(
        "+15550000051",
        "served",
        is_active=False,
        banned_at=now - timedelta(days=8),
        banned_until=now - timedelta(days=1),
    )
    make_user(
        "+15550000052",
        "serving",
        is_active=False,
        banned_at=now - timedelta(days=1),
        banned_until=now + timedelta(days=6),
    )
    make_user("+15550000053", "forever", is_active=False, banned_at=now, banned_until=None)

    assert maintenance.main(["lift-bans"]) == 0

    db_session.expire_all()
    served = db_session.get(UserAccount, "+15550000051")
    assert served.is_active is True
    assert served.banned_until is None
    assert db_session.get(UserAccount, "+15550000052").is_active is False
    assert db_session.get(UserAccount, "+15550000053").is_active is False
