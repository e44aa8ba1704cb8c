"""add reports

Revision ID: 9b3d7f2a6e10
Revises: 5c1e0a7d2b94
Create Date: 2026-10-20 10:41:07.552913

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9b3d7f2a6e10"
down_revision: Union[str, Sequence[str], None] = "5c1e0a7d2b94"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the report table."""
    op.create_table(
        "report",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_user_id", sa.Integer(), nullable=False),
        sa.Column("petition_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["author_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["petition_id"], ["petition.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_report_author_user_id"), "report", ["author_user_id"])
    op.create_index(op.f("ix_report_petition_id"), "report", ["petition_id"])


def downgrade() -> None:
    """Drop the report table."""
    op.drop_index(op.f("ix_report_petition_id"), table_name="report")
    op.drop_index(op.f("ix_report_author_user_id"), table_name="report")
    op.drop_table("report")
