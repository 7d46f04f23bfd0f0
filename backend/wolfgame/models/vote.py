"""Vote ORM — one voter's choice of target for one round.

Invariants:
    - Unique on (room_id, voter_id, round): re-voting updates, never duplicates
    - Purged for the round when the host finalizes an elimination

Design Decisions:
    - voter_id / target_id as plain FKs to players: votes are purged long
      before any player row could be removed
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Integer, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from wolfgame.db.base import Base


class Vote(Base):
    """Vote entity — (voter, round) -> target."""
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint(
            "room_id", "voter_id", "round", name="uq_votes_voter_round",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False,
    )
    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False,
    )
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
