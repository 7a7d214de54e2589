"""Research requests and stars

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Research requests
    op.create_table(
        "research_requests",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("query", sa.Text, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("username", sa.String(256), server_default="Unknown"),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("tags", sa.JSON, nullable=True),
        sa.Column("cost", sa.JSON, nullable=True),
        sa.Column("status", sa.String(32), server_default="running"),
        sa.Column("progress", sa.Integer, server_default="0"),
        sa.Column("current_stage", sa.Text, nullable=True),
        sa.Column("stages", sa.JSON, nullable=True),
        sa.Column("stars", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=True),
        sa.Column("updated_at", sa.DateTime, nullable=True),
    )
    op.create_index("ix_research_requests_status", "research_requests", ["status"])
    op.create_index("ix_research_requests_created_at", "research_requests", ["created_at"])
    op.create_index("ix_research_user_created", "research_requests", ["user_id", "created_at"])

    # Stars: one row per (research, user)
    op.create_table(
        "research_stars",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "research_id",
            sa.String(32),
            sa.ForeignKey("research_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=True),
        sa.UniqueConstraint("research_id", "user_id", name="uq_research_star"),
    )


def downgrade() -> None:
    op.drop_table("research_stars")
    op.drop_index("ix_research_user_created", table_name="research_requests")
    op.drop_index("ix_research_requests_created_at", table_name="research_requests")
    op.drop_index("ix_research_requests_status", table_name="research_requests")
    op.drop_table("research_requests")
