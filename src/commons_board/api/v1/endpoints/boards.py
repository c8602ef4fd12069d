# src/commons_board/api/v1/endpoints/boards.py
"""Board endpoints for the Commons Board API."""

from __future__ import annotations

from fastapi import APIRouter

from commons_board.api.v1.dependencies import SessionDep
from commons_board.core.errors import NotFoundError
from commons_board.models import Board
from commons_board.schemas.board import BoardReconcileResponse, BoardResponse
from commons_board.services import boards
from commons_board.services.boards import ReconcileResult

router = APIRouter(prefix="/boards", tags=["boards"])


@router.get("/", response_model=list[BoardResponse])
async def list_boards(db: SessionDep) -> list[Board]:
    """List boards, busiest first."""
    return boards.list_boards(db)


@router.get("/{title}", response_model=BoardResponse)
async def get_board(title: str, db: SessionDep) -> Board:
    """Return a board after bringing its cached count in line with the live count."""
    board = boards.get_board(db, title)
    if board is None:
        raise NotFoundError(f"Board {title!r} not found")
    boards.reconcile(db, title)
    return board


@router.post("/{title}/reconcile", response_model=BoardReconcileResponse)
async def reconcile_board(title: str, db: SessionDep) -> ReconcileResult:
    return boards.reconcile(db, title)
