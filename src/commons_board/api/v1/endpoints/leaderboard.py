# src/commons_board/api/v1/endpoints/leaderboard.py
"""Leaderboard endpoints for the Commons Board API."""

from __future__ import annotations

from fastapi import APIRouter, Query

from commons_board.api.v1.dependencies import SessionDep
from commons_board.core.errors import NotFoundError
from commons_board.schemas.leaderboard import LeaderboardEntryResponse, StandingResponse
from commons_board.services import points
from commons_board.services.points import LeaderboardEntry, Period, Standing

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/", response_model=list[LeaderboardEntryResponse])
async def get_leaderboard(
    db: SessionDep,
    period: Period = Query(Period.TOTAL, description="total, daily, weekly or monthly"),
    limit: int = Query(50, ge=1, le=200),
) -> list[LeaderboardEntry]:
    """Rank residents by points earned in the requested period."""
    return points.leaderboard(db, period, limit)


@router.get("/user/{identity}", response_model=StandingResponse)
async def get_user_standing(
    identity: str,
    db: SessionDep,
    period: Period = Query(Period.TOTAL),
) -> Standing:
    standing = points.user_standing(db, identity, period)
    if standing is None:
        raise NotFoundError("User not found")
    return standing
