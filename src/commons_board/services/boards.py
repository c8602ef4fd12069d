"""Board registry: one board per location with a cached discussion count."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commons_board.core.errors import NotFoundError
from commons_board.models import Board
from commons_board.repositories import DiscussionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    title: str
    stored: int
    actual: int
    corrected: bool


def get_board(db: Session, title: str) -> Board | None:
    return db.scalar(select(Board).where(Board.title == title))


def ensure_board(db: Session, title: str) -> Board:
    """Return the board for ``title``, creating it when missing.

    The insert runs in its own transaction. A concurrent creator wins the
    unique constraint and we simply read its row back.
    """
    board = get_board(db, title)
    if board is not None:
        return board
    board = Board(title=title, post_count=0)
    db.add(board)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        board = get_board(db, title)
        if board is None:
            raise
        return board
    logger.info("Created board %r", title)
    return board


def increment(db: Session, title: str) -> None:
    DiscussionRepository(db).bump_board(title, 1)


def decrement(db: Session, title: str) -> None:
    """Lower the cached count by one; the store refuses to go below zero."""
    DiscussionRepository(db).bump_board(title, -1)


def list_boards(db: Session) -> list[Board]:
    return list(db.scalars(select(Board).order_by(Board.post_count.desc(), Board.title.asc())))


def reconcile(db: Session, title: str) -> ReconcileResult:
    """Recount live discussions for ``title`` and repair the cached counter."""
    board = get_board(db, title)
    if board is None:
        raise NotFoundError(f"Board {title!r} not found")

    actual = DiscussionRepository(db).count_for_location(title)
    stored = board.post_count
    corrected = stored != actual
    if corrected:
        db.execute(
            update(Board)
            .where(Board.id == board.id)
            .values(post_count=actual)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(board)
        logger.info("Reconciled board %r: stored=%d actual=%d", title, stored, actual)
    return ReconcileResult(title=title, stored=stored, actual=actual, corrected=corrected)


def reconcile_all(db: Session) -> list[ReconcileResult]:
    return [reconcile(db, board.title) for board in list_boards(db)]
