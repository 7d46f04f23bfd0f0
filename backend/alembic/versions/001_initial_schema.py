"""Initial schema — rooms, players, votes.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("code", sa.String(6), nullable=False),
        sa.Column("room_name", sa.String(100), nullable=False, server_default="Wolf Game Room"),
        sa.Column("max_players", sa.Integer, nullable=False, server_default="8"),
        sa.Column("max_group_a", sa.Integer, nullable=False, server_default="4"),
        sa.Column("status", sa.String(20), nullable=False, server_default="waiting"),
        sa.Column("host_id", sa.Uuid, nullable=False),
        sa.Column("current_round", sa.Integer, nullable=False, server_default="1"),
        sa.Column("winner", sa.String(1), nullable=True),
        sa.Column("revealed_target_id", sa.Uuid, nullable=True),
        sa.Column("revealed_count", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_rooms_code", "rooms", ["code"], unique=True)

    op.create_table(
        "players",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("player_group", sa.String(1), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_host", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_players_room_id", "players", ["room_id"])
    op.create_index(
        "uq_players_one_host_per_room", "players", ["room_id"],
        unique=True,
        postgresql_where=sa.text("is_host"),
        sqlite_where=sa.text("is_host = 1"),
    )

    op.create_table(
        "votes",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("room_id", sa.Uuid, sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("voter_id", sa.Uuid, sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("target_id", sa.Uuid, sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("round", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("room_id", "voter_id", "round", name="uq_votes_voter_round"),
    )
    op.create_index("ix_votes_room_id", "votes", ["room_id"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("players")
    op.drop_table("rooms")
