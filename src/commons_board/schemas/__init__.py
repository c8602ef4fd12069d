# src/commons_board/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .board import BoardReconcileResponse, BoardResponse
from .discussion import (
    ActorRequest,
    CommentCreate,
    CommentResponse,
    DiscussionCreate,
    DiscussionResponse,
    DonateRequest,
    HelperStatusUpdate,
    VoteRequest,
    to_discussion_response,
)
from .leaderboard import LeaderboardEntryResponse, StandingResponse
from .moderation import (
    BannedUser,
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
from .notification import (
    DeleteNotificationRequest,
    DeleteNotificationResponse,
    MarkReadRequest,
    MarkReadResponse,
    NotificationPage,
    NotificationResponse,
    UnreadCount,
)

__all__ = [
    "BoardReconcileResponse", "BoardResponse",
    "ActorRequest", "CommentCreate", "CommentResponse", "DiscussionCreate",
    "DiscussionResponse", "DonateRequest", "HelperStatusUpdate", "VoteRequest",
    "to_discussion_response",
    "LeaderboardEntryResponse", "StandingResponse",
    "BannedUser", "BanUserRequest", "BanUserResponse",
    "ModerationActionRequest", "ModerationStats", "ReportCheckResponse", "ReportCreate",
    "ReportListResponse", "ReportResponse", "ReportRevoke",
    "DeleteNotificationRequest", "DeleteNotificationResponse",
    "MarkReadRequest", "MarkReadResponse", "NotificationPage", "NotificationResponse",
    "UnreadCount",
]
