"""initial schema

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-18 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_OPEN_REPORT = sa.text("status IN ('pending', 'approved')")


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _discussion_fk(nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        "discussion_id",
        sa.Integer(),
        sa.ForeignKey("discussion.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create boards, discussions with their interaction tables, ledger, inbox and reports."""
    op.create_table(
        "board",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text(), nullable=False, unique=True),
        sa.Column("post_count", sa.Integer(), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.CheckConstraint("post_count >= 0", name="ck_board_post_count"),
    )

    op.create_table(
        "user_account",
        sa.Column("identity", sa.Text(), primary_key=True),
        sa.Column("username", sa.Text(), nullable=True, unique=True),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("archived_points", sa.Integer(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_table(
        "point_entry",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "identity",
            sa.Text(),
            sa.ForeignKey("user_account.identity", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        _timestamp("awarded_at"),
    )
    op.create_index(
        "ix_point_entry_identity_awarded_at",
        "point_entry",
        ["identity", "awarded_at"],
    )

    op.create_table(
        "discussion",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("author", sa.Text(), nullable=False),
        sa.Column("author_identity", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("audio", sa.Text(), nullable=True),
        sa.Column("like_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("is_flagged", sa.Boolean(), nullable=False),
        sa.Column("flag_count", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        # Poll
        sa.Column("poll_private", sa.Boolean(), nullable=True),
        # Event
        _timestamp("event_date", nullable=True),
        sa.Column("event_time", sa.Text(), nullable=True),
        sa.Column("attendee_count", sa.Integer(), nullable=True),
        # Volunteer
        sa.Column("volunteers_needed", sa.Integer(), nullable=True),
        sa.Column("skills", sa.Text(), nullable=True),
        sa.Column("volunteer_count", sa.Integer(), nullable=True),
        # Donation
        sa.Column("goal_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("current_amount", sa.Numeric(14, 2), nullable=True),
        # Report
        sa.Column("help_needed", sa.Boolean(), nullable=True),
        sa.Column("helper_count", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "type IN ('Poll', 'Event', 'Donation', 'Volunteer', 'Report')",
            name="ck_discussion_type",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'flagged', 'removed')",
            name="ck_discussion_status",
        ),
        sa.CheckConstraint("like_count >= 0", name="ck_discussion_like_count"),
    )
    op.create_index("ix_discussion_location", "discussion", ["location"])
    op.create_index("ix_discussion_location_type", "discussion", ["location", "type"])

    op.create_table(
        "discussion_like",
        _discussion_fk(),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("discussion_id", "identity"),
    )
    op.create_table(
        "poll_option",
        _discussion_fk(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("votes", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("discussion_id", "position"),
        sa.UniqueConstraint("discussion_id", "label", name="uq_poll_option_label"),
        sa.CheckConstraint("votes >= 0", name="ck_poll_option_votes"),
    )
    op.create_table(
        "poll_vote",
        _discussion_fk(),
        sa.Column("voter_identity", sa.Text(), nullable=False),
        sa.Column("option", sa.Text(), nullable=False),
        _timestamp("voted_at"),
        sa.PrimaryKeyConstraint("discussion_id", "voter_identity"),
    )
    op.create_table(
        "discussion_participant",
        _discussion_fk(),
        sa.Column("identity", sa.Text(), nullable=False),
        _timestamp("joined_at"),
        sa.PrimaryKeyConstraint("discussion_id", "identity"),
    )
    op.create_table(
        "donation",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _discussion_fk(),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        _timestamp("donated_at"),
        sa.CheckConstraint("amount > 0", name="ck_donation_amount"),
    )
    op.create_index("ix_donation_discussion_id", "donation", ["discussion_id"])
    op.create_table(
        "discussion_helper",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _discussion_fk(),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        _timestamp("offered_at"),
        sa.UniqueConstraint("discussion_id", "identity", name="uq_discussion_helper_identity"),
        sa.CheckConstraint(
            "status IN ('offered', 'accepted', 'declined', 'completed')",
            name="ck_discussion_helper_status",
        ),
    )
    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _discussion_fk(),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_identity", sa.Text(), nullable=False),
        sa.Column("author_display_name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_comment_discussion_id", "comment", ["discussion_id"])
    op.create_table(
        "engagement_receipt",
        _discussion_fk(),
        sa.Column("identity", sa.Text(), nullable=False),
        sa.Column("kind", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("discussion_id", "identity", "kind"),
    )

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("recipient", sa.Text(), nullable=False),
        sa.Column("sender", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        _discussion_fk(nullable=True, ondelete="SET NULL"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_notification_recipient", "notification", ["recipient"])
    op.create_index(
        "ix_notification_recipient_read",
        "notification",
        ["recipient", "read", "created_at"],
    )

    op.create_table(
        "moderation_report",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _discussion_fk(nullable=True, ondelete="SET NULL"),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("context", sa.Text(), nullable=True),
        sa.Column("reporter_identity", sa.Text(), nullable=False),
        sa.Column("reported_identity", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewer_id", sa.Text(), nullable=True),
        _timestamp("reviewed_at", nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'removed', 'resolved', 'revoked')",
            name="ck_moderation_report_status",
        ),
    )
    op.create_index(
        "uq_moderation_report_open",
        "moderation_report",
        ["discussion_id"],
        unique=True,
        sqlite_where=_OPEN_REPORT,
        postgresql_where=_OPEN_REPORT,
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("uq_moderation_report_open", table_name="moderation_report")
    op.drop_table("moderation_report")
    op.drop_index("ix_notification_recipient_read", table_name="notification")
    op.drop_index("ix_notification_recipient", table_name="notification")
    op.drop_table("notification")
    op.drop_table("engagement_receipt")
    op.drop_index("ix_comment_discussion_id", table_name="comment")
    op.drop_table("comment")
    op.drop_table("discussion_helper")
    op.drop_index("ix_donation_discussion_id", table_name="donation")
    op.drop_table("donation")
    op.drop_table("discussion_participant")
    op.drop_table("poll_vote")
    op.drop_table("poll_option")
    op.drop_table("discussion_like")
    op.drop_index("ix_discussion_location_type", table_name="discussion")
    op.drop_index("ix_discussion_location", table_name="discussion")
    op.drop_table("discussion")
    op.drop_index("ix_point_entry_identity_awarded_at", table_name="point_entry")
    op.drop_table("point_entry")
    op.drop_table("user_account")
    op.drop_table("board")
