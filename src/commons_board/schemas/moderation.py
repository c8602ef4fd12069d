# src/commons_board/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from commons_board.models.moderation import ReportReason


class ReportCreate(BaseModel):
    """Schema for filing a report against a discussion."""

    discussion_id: int = Field(..., description="Discussion being reported")
    reason: ReportReason
    reporter_identity: str = Field(..., min_length=1)
    context: str | None = Field(None, max_length=2000)


class ReportRevoke(BaseModel):
    discussion_id: int
    reporter_identity: str = Field(..., min_length=1)


class ModerationActionRequest(BaseModel):
    """Schema for an administrator decision on a pending report."""

    action: Literal["approved", "rejected", "removed", "resolved"]
    notes: str | None = Field(None, max_length=2000)


class ReportResponse(BaseModel):
    """Schema for report information returned by the API."""

    id: int
    discussion_id: int | None
    reason: str
    context: str | None
    reporter_identity: str
    reported_identity: str | None
    status: str
    admin_notes: str | None
    reviewer_id: str | None
    reviewed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    current: int
    total: int
    has_more: bool


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
    pagination: Pagination


class ReportCheckResponse(BaseModel):
    has_pending_report: bool


class ModerationStats(BaseModel):
    total_reports: int
    pending_reports: int
    flagged_discussions: int
    status_breakdown: dict[str, int]


class BanUserRequest(BaseModel):
    """Schema for banning the author of a reported discussion."""

    reason: str | None = Field(None, max_length=500)
    duration: Literal["temporary", "permanent"] = "permanent"


class BannedUser(BaseModel):
    identity: str
    is_active: bool
    ban_reason: str | None
    banned_at: datetime | None
    banned_until: datetime | None

    model_config = ConfigDict(from_attributes=True)


class BanUserResponse(BaseModel):
    message: str
    user: BannedUser
    report: ReportResponse
