"""SQLAlchemy model for location boards."""
from sqlalchemy import CheckConstraint, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from commons_board.db.session import Base


class Board(Base):
    """Named location grouping discussions.

    ``post_count`` is a cache of how many discussions exist for ``title``;
    the live count is authoritative and reconciliation overwrites drift.
    """

    __tablename__ = "board"
    __table_args__ = (CheckConstraint("post_count >= 0", name="ck_board_post_count"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    post_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
