"""account bans

Revision ID: 9a3f6b2e1d57
Revises: 5c1e2a9d7b40
Create Date: 2026-10-18 16:40:02.731944

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9a3f6b2e1d57"
down_revision: Union[str, Sequence[str], None] = "5c1e2a9d7b40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Record who banned an account, why, and until when."""
    with op.batch_alter_table("user_account") as batch:
        batch.add_column(sa.Column("ban_reason", sa.Text(), nullable=True))
        batch.add_column(sa.Column("banned_by", sa.Text(), nullable=True))
        batch.add_column(sa.Column("banned_at", sa.DateTime(timezone=True), nullable=True))
        batch.add_column(sa.Column("banned_until", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("user_account") as batch:
        batch.drop_column("banned_until")
        batch.drop_column("banned_at")
        batch.drop_column("banned_by")
        batch.drop_column("ban_reason")
