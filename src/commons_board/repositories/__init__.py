"""Data access helpers."""

from .discussion_repo import DiscussionRepository

__all__ = ["DiscussionRepository"]
