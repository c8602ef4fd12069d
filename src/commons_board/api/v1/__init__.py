# src/commons_board/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    boards_router,
    discussions_router,
    leaderboard_router,
    moderation_router,
    notifications_router,
)

__all__ = [
    "boards_router",
    "discussions_router",
    "leaderboard_router",
    "moderation_router",
    "notifications_router",
]
