# src/commons_board/services/moderation.py
"""Moderation services for Commons Board."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commons_board.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from commons_board.core.settings import settings
from commons_board.db.time import utcnow
from commons_board.models import Discussion, ModerationReport, UserAccount
from commons_board.models.discussion import ANONYMOUS, DiscussionStatus
from commons_board.models.moderation import (
    ADMIN_ACTIONS,
    OPEN_REPORT_STATUSES,
    ReportReason,
    ReportStatus,
)
from commons_board.models.notification import NotificationType
from commons_board.services.discussions import parse_discussion_id
from commons_board.services.side_effects import NotificationRequest, apply_side_effects

logger = logging.getLogger(__name__)

BAN_DURATIONS = ("temporary", "permanent")
DEFAULT_BAN_REASON = "Violation of community guidelines"


class ModerationService:
    """Service handling report intake and administrator resolution."""

    @staticmethod
    def file_report(
        db: Session,
        raw_discussion_id: str | int,
        reason: str,
        reporter_identity: str,
        context: str | None = None,
    ) -> ModerationReport:
        """File a report and flag its discussion.

        Raises:
            NotFoundError: If the discussion does not exist.
            ValidationError: If the reason is not one of the known reasons.
            ConflictError: If an open report already exists for the discussion.
        """
        discussion_id = parse_discussion_id(raw_discussion_id)
        try:
            reason = ReportReason(reason).value
        except ValueError as exc:
            raise ValidationError(f"Unknown report reason: {reason}", field="reason") from exc

        discussion = db.get(Discussion, discussion_id, populate_existing=True)
        if discussion is None or discussion.status == DiscussionStatus.REMOVED.value:
            raise NotFoundError(f"Discussion {discussion_id} not found")
        if ModerationService._open_report(db, discussion_id) is not None:
            raise ConflictError("This discussion has already been reported", code="already_reported")

        report = ModerationReport(
            discussion_id=discussion_id,
            reason=reason,
            context=context,
            reporter_identity=reporter_identity,
            reported_identity=discussion.author_identity,
            status=ReportStatus.PENDING.value,
        )
        try:
            db.add(report)
            db.flush()
            db.execute(
                update(Discussion)
                .where(Discussion.id == discussion_id)
                .values(
                    status=DiscussionStatus.FLAGGED.value,
                    is_flagged=True,
                    flag_count=Discussion.flag_count + 1,
                )
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except IntegrityError as exc:
            # Another reporter got there first; the partial unique index refused ours.
            db.rollback()
            raise ConflictError(
                "This discussion has already been reported",
                code="already_reported",
            ) from exc
        db.refresh(report)
        logger.info("Report %d filed against discussion %d", report.id, discussion_id)
        return report

    @staticmethod
    def revoke_report(db: Session, raw_discussion_id: str | int, reporter_identity: str) -> None:
        """Let the original reporter withdraw a report that is still pending."""
        discussion_id = parse_discussion_id(raw_discussion_id)
        discussion = db.get(Discussion, discussion_id, populate_existing=True)
        if discussion is None:
            raise NotFoundError(f"Discussion {discussion_id} not found")

        report = db.scalar(
            select(ModerationReport).where(
                ModerationReport.discussion_id == discussion_id,
                ModerationReport.status == ReportStatus.PENDING.value,
            )
        )
        if report is None:
            raise NotFoundError("No pending report to revoke")
        if report.reporter_identity != reporter_identity:
            raise AuthorizationError("Only the original reporter may revoke this report")

        revoked = db.execute(
            update(ModerationReport)
            .where(
                ModerationReport.id == report.id,
                ModerationReport.status == ReportStatus.PENDING.value,
            )
            .values(status=ReportStatus.REVOKED.value)
            .execution_options(synchronize_session=False)
        )
        if revoked.rowcount != 1:
            db.rollback()
            raise ConflictError("The report was reviewed in the meantime", code="report_closed")

        db.execute(
            update(Discussion)
            .where(Discussion.id == discussion_id, Discussion.flag_count > 0)
            .values(flag_count=Discussion.flag_count - 1)
            .execution_options(synchronize_session=False)
        )
        if not ModerationService.has_pending_report(db, discussion_id):
            ModerationService._unflag(db, discussion_id)
        db.commit()
        logger.info("Report %d revoked by its reporter", report.id)

    @staticmethod
    def take_action(
        db: Session,
        report_id: int,
        action: str,
        reviewer_id: str,
        notes: str | None = None,
    ) -> ModerationReport:
        """Move a pending report to its terminal status and apply it to the discussion.

        Raises:
            ValidationError: If ``action`` is not an administrator outcome.
            NotFoundError: If the report does not exist.
            ConflictError: If the report is no longer pending.
        """
        if action not in ADMIN_ACTIONS:
            raise ValidationError(f"Unsupported moderation action: {action}", field="action")

        report = ModerationService.get_report(db, report_id)
        if report.status != ReportStatus.PENDING.value:
            raise ConflictError(
                f"Report {report_id} was already {report.status}",
                code="report_closed",
            )

        moved = db.execute(
            update(ModerationReport)
            .where(
                ModerationReport.id == report_id,
                ModerationReport.status == ReportStatus.PENDING.value,
            )
            .values(
                status=action,
                admin_notes=notes,
                reviewer_id=reviewer_id,
                reviewed_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount != 1:
            db.rollback()
            raise ConflictError(f"Report {report_id} was already reviewed", code="report_closed")

        discussion = None
        if report.discussion_id is not None:
            discussion = db.get(Discussion, report.discussion_id)
            if action == ReportStatus.REMOVED.value:
                db.execute(
                    update(Discussion)
                    .where(Discussion.id == report.discussion_id)
                    .values(status=DiscussionStatus.REMOVED.value)
                    .execution_options(synchronize_session=False)
                )
            else:
                ModerationService._unflag(db, report.discussion_id)
        db.commit()
        logger.info("Report %d marked %s by %s", report_id, action, reviewer_id)

        effects = []
        if discussion is not None and action == ReportStatus.REMOVED.value:
            effects.append(
                NotificationRequest(
                    discussion.author_identity,
                    reviewer_id,
                    NotificationType.CONTENT_REMOVED.value,
                    discussion.id,
                    data={"report_id": report_id},
                )
            )
        effects.append(
            NotificationRequest(
                report.reporter_identity,
                reviewer_id,
                NotificationType.REPORT_REVIEWED.value,
                report.discussion_id,
                data={"report_id": report_id, "outcome": action},
            )
        )
        apply_side_effects(db, effects)
        db.refresh(report)
        return report

    @staticmethod
    def ban_reported_user(
        db: Session,
        report_id: int,
        reviewer_id: str,
        reason: str | None = None,
        duration: str = "permanent",
        now: datetime | None = None,
    ) -> tuple[ModerationReport, UserAccount]:
        """Deactivate the author of a reported discussion and resolve the report.

        A ``temporary`` ban lasts ``TEMPORARY_BAN_DAYS``; a ``permanent`` one
        has no end date.

        Raises:
            ValidationError: If the duration is unknown or the report names nobody.
            NotFoundError: If the report or the reported account does not exist.
            ConflictError: If the report is no longer pending.
        """
        if duration not in BAN_DURATIONS:
            raise ValidationError(f"Unsupported ban duration: {duration}", field="duration")

        report = ModerationService.get_report(db, report_id)
        if report.status != ReportStatus.PENDING.value:
            raise ConflictError(
                f"Report {report_id} was already {report.status}",
                code="report_closed",
            )
        identity = report.reported_identity
        if not identity or identity == ANONYMOUS:
            raise ValidationError("No user to ban for this report", field="reported_identity")
        account = db.get(UserAccount, identity, populate_existing=True)
        if account is None:
            raise NotFoundError("Reported user not found")

        now = now or utcnow()
        reason = reason or DEFAULT_BAN_REASON
        moved = db.execute(
            update(ModerationReport)
            .where(
                ModerationReport.id == report_id,
                ModerationReport.status == ReportStatus.PENDING.value,
            )
            .values(
                status=ReportStatus.RESOLVED.value,
                admin_notes=f"User banned: {reason}",
                reviewer_id=reviewer_id,
                reviewed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount != 1:
            db.rollback()
            raise ConflictError(f"Report {report_id} was already reviewed", code="report_closed")

        account.is_active = False
        account.ban_reason = reason
        account.banned_by = reviewer_id
        account.banned_at = now
        account.banned_until = (
            now + timedelta(days=settings.temporary_ban_days) if duration == "temporary" else None
        )
        if report.discussion_id is not None:
            ModerationService._unflag(db, report.discussion_id)
        db.commit()
        logger.info("Report %d resolved by banning %s (%s)", report_id, identity, duration)

        apply_side_effects(
            db,
            [
                NotificationRequest(
                    report.reporter_identity,
                    reviewer_id,
                    NotificationType.REPORT_REVIEWED.value,
                    report.discussion_id,
                    data={"report_id": report_id, "outcome": ReportStatus.RESOLVED.value},
                )
            ],
        )
        db.refresh(report)
        db.refresh(account)
        return report, account

    @staticmethod
    def lift_expired_bans(db: Session, now: datetime | None = None) -> int:
        """Reactivate accounts whose temporary ban has run out."""
        result = db.execute(
            update(UserAccount)
            .where(
                UserAccount.is_active.is_(False),
                UserAccount.banned_until.is_not(None),
                UserAccount.banned_until <= (now or utcnow()),
            )
            .values(
                is_active=True,
                ban_reason=None,
                banned_by=None,
                banned_at=None,
                banned_until=None,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Lifted %d expired bans", result.rowcount)
        return result.rowcount

    @staticmethod
    def get_report(db: Session, report_id: int) -> ModerationReport:
        report = db.get(ModerationReport, report_id, populate_existing=True)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    @staticmethod
    def list_reports(
        db: Session,
        status: str = ReportStatus.PENDING.value,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[ModerationReport], dict[str, Any]]:
        """Return one page of reports (newest first) plus pagination details."""
        stmt = select(ModerationReport)
        if status != "all":
            try:
                stmt = stmt.where(ModerationReport.status == ReportStatus(status).value)
            except ValueError as exc:
                raise ValidationError(f"Unknown report status: {status}", field="status") from exc

        page = max(page, 1)
        total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        reports = list(
            db.scalars(
                stmt.order_by(ModerationReport.created_at.desc(), ModerationReport.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        )
        pagination = {
            "current": page,
            "total": math.ceil(total / limit) if limit else 0,
            "has_more": page * limit < total,
        }
        return reports, pagination

    @staticmethod
    def has_pending_report(db: Session, discussion_id: int) -> bool:
        return db.scalar(
            select(
                select(ModerationReport.id)
                .where(
                    ModerationReport.discussion_id == discussion_id,
                    ModerationReport.status == ReportStatus.PENDING.value,
                )
                .exists()
            )
        ) or False

    @staticmethod
    def stats(db: Session) -> dict[str, Any]:
        breakdown = dict(
            db.execute(
                select(ModerationReport.status, func.count()).group_by(ModerationReport.status)
            ).all()
        )
        flagged = db.scalar(
            select(func.count()).select_from(Discussion).where(Discussion.is_flagged.is_(True))
        )
        return {
            "total_reports": sum(breakdown.values()),
            "pending_reports": breakdown.get(ReportStatus.PENDING.value, 0),
            "flagged_discussions": flagged or 0,
            "status_breakdown": breakdown,
        }

    @staticmethod
    def _open_report(db: Session, discussion_id: int) -> ModerationReport | None:
        return db.scalar(
            select(ModerationReport).where(
                ModerationReport.discussion_id == discussion_id,
                ModerationReport.status.in_(OPEN_REPORT_STATUSES),
            )
        )

    @staticmethod
    def _unflag(db: Session, discussion_id: int) -> None:
        db.execute(
            update(Discussion)
            .where(Discussion.id == discussion_id)
            .values(status=DiscussionStatus.ACTIVE.value, is_flagged=False)
            .execution_options(synchronize_session=False)
        )
