"""Scheduled maintenance jobs.

Run from cron or a scheduler, for example::

    python -m commons_board.scripts.maintenance leaderboard --period weekly
    python -m commons_board.scripts.maintenance cleanup-notifications --days 30
"""
from __future__ import annotations

import argparse
import logging

from commons_board.core.logging import configure_logging
from commons_board.core.settings import settings
from commons_board.db.session import SessionLocal, create_tables
from commons_board.scripts.migrate import run_upgrade_head
from commons_board.services import boards, notifications, points
from commons_board.services.moderation import ModerationService

logger = logging.getLogger(__name__)


def run_leaderboard(period: str, top: int) -> int:
    with SessionLocal() as db:
        return notifications.notify_leaderboard_top(db, period, top)


def run_cleanup_notifications(days: int, read_only: bool) -> int:
    with SessionLocal() as db:
        return notifications.cleanup(db, days, read_only=read_only)


def run_prune_points(days: int) -> int:
    with SessionLocal() as db:
        return points.prune_history(db, days)


def run_reconcile_boards() -> int:
    with SessionLocal() as db:
        results = boards.reconcile_all(db)
    corrected = [result for result in results if result.corrected]
    for result in corrected:
        logger.info("Board %r: %d -> %d", result.title, result.stored, result.actual)
    return len(corrected)


def run_lift_bans() -> int:
    with SessionLocal() as db:
        return ModerationService.lift_expired_bans(db)


def build_parser() -> argparse.ArgumentParser:
    parser =argparse.ArgumentParser(description="Commons Board maintenance jobs")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    leaderboard = sub.add_parser("leaderboard", help="Notify the current leaderboard top ranks")
    leaderboard.add_argument(
        "--period",
        choices=[p.value for p in points.Period if p is not points.Period.TOTAL],
        default=points.Period.WEEKLY.value,
    )
    leaderboard.add_argument("--top", type=int, default=settings.leaderboard_notify_top)

    cleanup = sub.add_parser("cleanup-notifications", help="Delete old notifications")
    cleanup.add_argument("--days", type=int, default=settings.notification_retention_days)
    cleanup.add_argument(
        "--read-only",
        action="store_true",
        help="Only delete notifications that were already read",
    )

    prune = sub.add_parser("prune-points", help="Fold old points history into archived totals")
    prune.add_argument("--days", type=int, default=settings.points_retention_days)

    sub.add_parser("reconcile-boards", help="Recount discussions per board")
    sub.add_parser("lift-bans", help="Reactivate accounts whose temporary ban has expired")
    sub.add_parser("migrate", help="Apply Alembic migrations up to head")
    sub.add_parser("create-tables", help="Create tables without Alembic (local use)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "leaderboard":
        sent = run_leaderboard(args.period, args.top)
        logger.info("Leaderboard job sent %d notifications", sent)
    elif args.command == "cleanup-notifications":
        run_cleanup_notifications(args.days, args.read_only)
    elif args.command == "prune-points":
        run_prune_points(args.days)
    elif args.command == "reconcile-boards":
        fixed = run_reconcile_boards()
        logger.info("Reconciled boards, %d corrected", fixed)
    elif args.command == "lift-bans":
        run_lift_bans()
    elif args.command == "migrate":
        run_upgrade_head()
    elif args.command == "create-tables":
        create_tables()
        logger.info("Tables created")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
