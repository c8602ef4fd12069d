# src/commons_board/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .boards import router as boards_router
from .discussions import router as discussions_router
from .leaderboard import router as leaderboard_router
from .moderation import router as moderation_router
from .notifications import router as notifications_router

__all__ = [
    "boards_router",
    "discussions_router",
    "leaderboard_router",
    "moderation_router",
    "notifications_router",
]
