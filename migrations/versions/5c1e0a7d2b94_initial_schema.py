"""initial schema

Revision ID: 5c1e0a7d2b94
Revises:
Create Date: 2026-10-19 09:12:40.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e0a7d2b94"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, policy, membership request, petition and vote tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("membership_state", sa.String(length=32), nullable=False),
        sa.Column("vote_budget", sa.Integer(), nullable=False),
        sa.Column("last_budget_regen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("vote_budget >= 0", name="ck_users_vote_budget_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "policy_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("min_votes_petition", sa.Integer(), nullable=False),
        sa.Column("min_votes_membership_request", sa.Integer(), nullable=False),
        sa.Column("approval_percentage", sa.Integer(), nullable=False),
        sa.Column("max_vote_budget", sa.Integer(), nullable=False),
        sa.Column("regen_interval_minutes", sa.Integer(), nullable=False),
        sa.CheckConstraint("min_votes_petition >= 0", name="ck_policy_min_votes_petition"),
        sa.CheckConstraint(
            "min_votes_membership_request >= 0",
            name="ck_policy_min_votes_membership_request",
        ),
        sa.CheckConstraint(
            "approval_percentage BETWEEN 0 AND 100",
            name="ck_policy_approval_percentage",
        ),
        sa.CheckConstraint("max_vote_budget >= 0", name="ck_policy_max_vote_budget"),
        sa.CheckConstraint("regen_interval_minutes >= 0", name="ck_policy_regen_interval"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "membership_request",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("applicant_user_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("approval_count", sa.Integer(), nullable=False),
        sa.Column("rejection_count", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["applicant_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("applicant_user_id"),
    )
    op.create_table(
        "petition",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_urls", sa.JSON(), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("approval_count", sa.Integer(), nullable=False),
        sa.Column("rejection_count", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("hidden", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["author_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_petition_author_user_id"), "petition", ["author_user_id"])
    op.create_table(
        "petition_like",
        sa.Column("petition_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["petition_id"], ["petition.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("petition_id", "user_id"),
    )
    op.create_table(
        "membership_vote",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("voter_user_id", sa.Integer(), nullable=False),
        sa.Column("choice", sa.String(length=32), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["request_id"], ["membership_request.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voter_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_id", "voter_user_id", name="uq_membership_vote_voter"),
    )
    op.create_index(
        "ix_membership_vote_voter_created",
        "membership_vote",
        ["voter_user_id", "created_at"],
    )
    op.create_table(
        "petition_vote",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("petition_id", sa.Integer(), nullable=False),
        sa.Column("voter_user_id", sa.Integer(), nullable=False),
        sa.Column("choice", sa.String(length=32), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["petition_id"], ["petition.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voter_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("petition_id", "voter_user_id", name="uq_petition_vote_voter"),
    )
    op.create_index(op.f("ix_petition_vote_petition_id"), "petition_vote", ["petition_id"])


def downgrade() -> None:
    """Drop every table created by upgrade()."""
    op.drop_index(op.f("ix_petition_vote_petition_id"), table_name="petition_vote")
    op.drop_table("petition_vote")
    op.drop_index("ix_membership_vote_voter_created", table_name="membership_vote")
    op.drop_table("membership_vote")
    op.drop_table("petition_like")
    op.drop_index(op.f("ix_petition_author_user_id"), table_name="petition")
    op.drop_table("petition")
    op.drop_table("membership_request")
    op.drop_table("policy_config")
    op.drop_table("users")
