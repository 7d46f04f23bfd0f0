"""ORM Models — SQLAlchemy declarative models for rooms, players and votes.

Invariants:
    - All models inherit from Base (db/base.py)
    - Players and votes are scoped by a room_id foreign key; no ORM
      relationships, since storage issues Core statements only

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata holds every table before
      create_all or alembic autogenerate runs
"""

from wolfgame.models.room import Room  # noqa: F401
from wolfgame.models.player import Player  # noqa: F401
from wolfgame.models.vote import Vote  # noqa: F401
