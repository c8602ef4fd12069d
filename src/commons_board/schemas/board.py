# src/commons_board/schemas/board.py
"""Board-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class BoardResponse(BaseModel):
    """Schema for board information returned by the API."""

    id: int
    title: str
    post_count: int
    image: str | None

    model_config = ConfigDict(from_attributes=True)


class BoardReconcileResponse(BaseModel):
    title: str
    stored: int
    actual: int
    corrected: bool

    model_config = ConfigDict(from_attributes=True)
