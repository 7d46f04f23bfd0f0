"""SQL Storage — StorageCollaborator implementation over async SQLAlchemy.

Invariants:
    - One session and one commit per call: every mutation is a single
      conditional statement (INSERT / UPDATE ... WHERE / DELETE ... WHERE)
    - Rows cross the boundary as plain dicts keyed by column name
    - Change events are published only after a successful commit
    - insert raises DuplicateRecordError(table) on uniqueness violations

Design Decisions:
    - Core statements with RETURNING instead of ORM objects: the returned
      row is exactly what was written, no refresh round-trip, works on
      PostgreSQL and SQLite >= 3.35
    - update's filter is the CAS guard: callers include the expected current
      values (e.g. current_round) and get None when another writer won
"""

import logging

from sqlalchemy import Table as SATable, delete, insert, select, update

from wolfgame.core.domain_types import ChangeKind, Table
from wolfgame.core.errors import DuplicateRecordError
from wolfgame.core.repository_protocols import (
    ChangeCallback, ChangeEvent, Unsubscribe,
)
from wolfgame.infrastructure.change_bus import ChangeBus
from wolfgame.infrastructure.database import DatabaseSessionManager
from wolfgame.models import Player, Room, Vote

logger = logging.getLogger(__name__)

_TABLES: dict[Table, SATable] = {
    Table.ROOMS: Room.__table__,
    Table.PLAYERS: Player.__table__,
    Table.VOTES: Vote.__table__,
}


def _where(table: SATable, filter: dict) -> list:
    return [table.c[key] == value for key, value in filter.items()]


class SqlStorage:
    """Shared durable storage for rooms, players and votes."""

    def __init__(self, db: DatabaseSessionManager, bus: ChangeBus):
        self._db = db
        self._bus = bus

    async def insert(self, table: Table, record: dict) -> dict:
        sa_table = _TABLES[table]
        stmt = insert(sa_table).values(**record).returning(*sa_table.c)
        try:
            async with self._db.session() as db:
                result = await db.execute(stmt)
                row = dict(result.mappings().one())
                await db.commit()
        except DuplicateRecordError as e:
            raise DuplicateRecordError(table.value) from e
        self._bus.publish(ChangeEvent(table, ChangeKind.INSERT, row))
        return row

    async def update(
        self, table: Table, filter: dict, patch: dict,
    ) -> dict | None:
        sa_table = _TABLES[table]
        stmt = (
            update(sa_table)
            .where(*_where(sa_table, filter))
            .values(**patch)
            .returning(*sa_table.c)
        )
        async with self._db.session() as db:
            result = await db.execute(stmt)
            rows = [dict(r) for r in result.mappings().all()]
            await db.commit()
        for row in rows:
            self._bus.publish(ChangeEvent(table, ChangeKind.UPDATE, row))
        if len(rows) > 1:
            logger.warning(
                f"update matched {len(rows)} rows, returning first",
                extra={"table": table.value},
            )
        return rows[0] if rows else None

    async def select(
        self, table: Table, filter: dict, order_by: list[str] | None = None,
    ) -> list[dict]:
        sa_table = _TABLES[table]
        stmt = select(sa_table).where(*_where(sa_table, filter))
        if order_by:
            stmt = stmt.order_by(*(sa_table.c[col] for col in order_by))
        async with self._db.session() as db:
            result = await db.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def delete(self, table: Table, filter: dict) -> int:
        sa_table = _TABLES[table]
        stmt = (
            delete(sa_table)
            .where(*_where(sa_table, filter))
            .returning(*sa_table.c)
        )
        async with self._db.session() as db:
            result = await db.execute(stmt)
            rows = [dict(r) for r in result.mappings().all()]
            await db.commit()
        for row in rows:
            self._bus.publish(ChangeEvent(table, ChangeKind.DELETE, None, row))
        return len(rows)

    def subscribe(
        self, table: Table, filter: dict, on_change: ChangeCallback,
    ) -> Unsubscribe:
        return self._bus.subscribe(table, filter, on_change)
