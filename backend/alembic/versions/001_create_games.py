"""Create games table with roster/waitlist and optimistic-lock version.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "games",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("start_time", sa.BigInteger(), nullable=False),
        sa.Column("duration_mins", sa.Integer(), nullable=False),
        sa.Column("num_teams", sa.Integer(), nullable=False),
        sa.Column("team_size", sa.Integer(), nullable=False),
        sa.Column("sign_up_fee_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("split_fee_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("roster", sa.JSON(), nullable=False),
        sa.Column("waitlist", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("version > 0", name="check_game_version_positive"),
    )
    # Category listing: WHERE category = :c AND start_time >= :since ORDER BY start_time
    op.create_index("ix_games_category_start_time", "games", ["category", "start_time"])


def downgrade() -> None:
    op.drop_index("ix_games_category_start_time", table_name="games")
    op.drop_table("games")
