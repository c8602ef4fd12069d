# src/commons_board/schemas/leaderboard.py
"""Leaderboard-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class LeaderboardEntryResponse(BaseModel):
    rank: int
    identity: str
    display_name: str
    points: int

    model_config = ConfigDict(from_attributes=True)


class StandingResponse(BaseModel):
    """A single identity's position on a leaderboard."""

    identity: str
    display_name: str
    period: str
    points: int
    rank: int
    participants: int

    model_config = ConfigDict(from_attributes=True)
