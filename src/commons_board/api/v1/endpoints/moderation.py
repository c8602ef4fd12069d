# src/commons_board/api/v1/endpoints/moderation.py
"""Moderation-related endpoints for the Commons Board API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from commons_board.api.v1.dependencies import AdminDep, SessionDep
from commons_board.models import ModerationReport
from commons_board.schemas.moderation import (
    BanUserRequest,
    BanUserResponse,
    ModerationActionRequest,
    ModerationStats,
    ReportCheckResponse,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReportRevoke,
)
from commons_board.services.discussions import parse_discussion_id
from commons_board.services.moderation import ModerationService

router = APIRouter(prefix="/moderation", tags=["moderation"])
moderation_service = ModerationService()


@router.post("/report", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def file_report(payload: ReportCreate, db: SessionDep) -> ModerationReport:
    """Report a discussion. A discussion with an open report cannot be reported again."""
    return moderation_service.file_report(
        db,
        payload.discussion_id,
        payload.reason.value,
        payload.reporter_identity,
        payload.context,
    )


@router.post("/report/revoke")
async def revoke_report(payload: ReportRevoke, db: SessionDep) -> dict[str, str]:
    """Withdraw your own pending report."""
    moderation_service.revoke_report(db, payload.discussion_id, payload.reporter_identity)
    return {"message": "Report revoked successfully"}


@router.get("/report/check", response_model=ReportCheckResponse)
async def check_report(
    db: SessionDep,
    discussion_id: str = Query(..., description="Discussion to check"),
) -> dict[str, bool]:
    pending = moderation_service.has_pending_report(db, parse_discussion_id(discussion_id))
    return {"has_pending_report": pending}


@router.get("/reports", response_model=ReportListResponse)
async def list_reports(
    db: SessionDep,
    admin_id: AdminDep,
    report_status: str = Query("pending", alias="status", description="Status or 'all'"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict[str, Any]:
    """List reports for review, newest first."""
    reports, pagination = moderation_service.list_reports(db, report_status, page, limit)
    return {"reports": reports, "pagination": pagination}


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(report_id: str, db: SessionDep, admin_id: AdminDep) -> ModerationReport:
    return moderation_service.get_report(db, parse_discussion_id(report_id, entity="Report"))


@router.post("/reports/{report_id}/action", response_model=ReportResponse)
async def take_action(
    report_id: str,
    payload: ModerationActionRequest,
    db: SessionDep,
    admin_id: AdminDep,
) -> ModerationReport:
    """Resolve a pending report as approved, rejected, removed or resolved."""
    return moderation_service.take_action(
        db,
        parse_discussion_id(report_id, entity="Report"),
        payload.action,
        admin_id,
        payload.notes,
    )


@router.post("/reports/{report_id}/ban-user", response_model=BanUserResponse)
async def ban_reported_user(
    report_id: str,
    payload: BanUserRequest,
    db: SessionDep,
    admin_id: AdminDep,
) -> dict[str, Any]:
    """Ban the author of the reported discussion and resolve the report."""
    report, account = moderation_service.ban_reported_user(
        db,
        parse_discussion_id(report_id, entity="Report"),
        admin_id,
        payload.reason,
        payload.duration,
    )
    return {"message": "User banned successfully", "user": account, "report": report}


@router.get("/stats", response_model=ModerationStats)
async def moderation_stats(db: SessionDep, admin_id: AdminDep) -> dict[str, Any]:
    return moderation_service.stats(db)
