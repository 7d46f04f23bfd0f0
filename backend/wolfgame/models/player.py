"""Player ORM — a participant admitted to a room.

Invariants:
    - Always belongs to a Room (room_id FK)
    - player_group is fixed at insert; NULL only for the host
    - is_active flips true -> false on elimination and never back
    - At most one is_host row per room (partial unique index)

Design Decisions:
    - Partial unique index instead of application checks: two host tabs racing
      to create the host row cannot both succeed
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Boolean, DateTime, ForeignKey, Index, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from wolfgame.db.base import Base


class Player(Base):
    """Player entity — host or group member."""
    __tablename__ = "players"
    __table_args__ = (
        Index(
            "uq_players_one_host_per_room", "room_id",
            unique=True,
            sqlite_where=text("is_host = 1"),
            postgresql_where=text("is_host"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    player_group: Mapped[str | None] = mapped_column(
        String(1), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    is_host: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
