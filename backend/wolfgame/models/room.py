"""Room ORM — one game session identified by a 6-character code.

Invariants:
    - code is unique and stored upper-case
    - status in {waiting, playing, voting, finished}; playing is reserved
    - current_round starts at 1 and only grows, by 1 per finalize
    - revealed_target_id / revealed_count describe the current round only

Design Decisions:
    - host_id is an opaque credential, not a player FK: the host player row
      is created separately and is never tied to it
    - current_round / winner persisted on the room so every client derives
      the same round and result (no client-local counters)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from wolfgame.db.base import Base


class Room(Base):
    """Room row; players and votes reference it by room_id."""
    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(
        String(6), nullable=False, unique=True, index=True,
    )
    room_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Wolf Game Room",
    )
    max_players: Mapped[int] = mapped_column(
        Integer, nullable=False, default=8,
    )
    max_group_a: Mapped[int] = mapped_column(
        Integer, nullable=False, default=4,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="waiting",
    )
    host_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, default=uuid.uuid4,
    )
    current_round: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    winner: Mapped[str | None] = mapped_column(
        String(1), nullable=True,
    )
    revealed_target_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True,
    )
    revealed_count: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
