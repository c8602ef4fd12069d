# src/commons_board/models/__init__.py
"""SQLAlchemy models for the Commons Board application."""

from .board import Board
from .discussion import (
    Comment,
    Discussion,
    DiscussionHelper,
    DiscussionLike,
    DiscussionParticipant,
    Donation,
    DonationDiscussion,
    EngagementReceipt,
    EventDiscussion,
    IncidentDiscussion,
    PollDiscussion,
    PollOption,
    PollVote,
    VolunteerDiscussion,
)
from .moderation import ModerationReport
from .notification import Notification
from .user import PointEntry, UserAccount

__all__ = [
    "Board",
    "Comment", "Discussion", "DiscussionHelper", "DiscussionLike",
    "DiscussionParticipant", "Donation", "DonationDiscussion", "EngagementReceipt",
    "EventDiscussion", "IncidentDiscussion", "PollDiscussion", "PollOption",
    "PollVote", "VolunteerDiscussion",
    "ModerationReport",
    "Notification",
    "PointEntry", "UserAccount",
]
