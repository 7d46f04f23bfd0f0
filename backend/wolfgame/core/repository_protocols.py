"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - One generic table-oriented contract instead of per-entity repositories:
      services need exactly insert / update / select / delete / subscribe,
      each a single conditional write or point-in-time read
    - Filters are equality-only dicts; an update filter doubles as a
      compare-and-swap guard (None returned when nothing matched)
"""

from dataclasses import dataclass
from typing import Callable, Protocol

from wolfgame.core.domain_types import ChangeKind, Table


@dataclass(frozen=True)
class ChangeEvent:
    """Row-level change notification. `new` is None for deletes."""
    table: Table
    kind: ChangeKind
    new: dict | None
    old: dict | None = None

    @property
    def row(self) -> dict | None:
        return self.new if self.new is not None else self.old


ChangeCallback = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class StorageCollaborator(Protocol):
    """Contract for shared durable storage — implemented by shell.

    insert raises DuplicateRecordError on a uniqueness violation and
    StorageUnavailable on any other failure; the other calls raise
    StorageUnavailable only.
    """
    async def insert(self, table: Table, record: dict) -> dict: ...
    async def update(
        self, table: Table, filter: dict, patch: dict,
    ) -> dict | None: ...
    async def select(
        self, table: Table, filter: dict, order_by: list[str] | None = None,
    ) -> list[dict]: ...
    async def delete(self, table: Table, filter: dict) -> int: ...
    def subscribe(
        self, table: Table, filter: dict, on_change: ChangeCallback,
    ) -> Unsubscribe: ...
