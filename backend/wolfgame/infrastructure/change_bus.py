"""Change Bus — in-process, row-level change notifications scoped by table and filter.

Invariants:
    - subscribe() returns an idempotent unsubscribe handle
    - A subscription receives an event when every filter key equals the
      row's value (new row, or old row for deletes)
    - publish() never raises: a failing callback is logged and skipped
    - No ordering or exactly-once guarantee is promised to subscribers

Design Decisions:
    - Synchronous callbacks: subscribers only mark state dirty / enqueue,
      the actual re-read happens on their own task (RoomSync)
    - Module-level singleton like db_manager: one bus per process, shared by
      every SqlStorage instance so all writers notify all readers
"""

import itertools
import logging
from dataclasses import dataclass

from wolfgame.core.domain_types import Table
from wolfgame.core.repository_protocols import (
    ChangeCallback, ChangeEvent, Unsubscribe,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Subscription:
    table: Table
    filter: dict
    on_change: ChangeCallback

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        row = event.row
        if row is None:
            return not self.filter
        return all(row.get(k) == v for k, v in self.filter.items())


class ChangeBus:
    """Fan-out of storage change events to filtered subscribers."""

    def __init__(self):
        self._subscriptions: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(
        self, table: Table, filter: dict, on_change: ChangeCallback,
    ) -> Unsubscribe:
        sub_id = next(self._ids)
        self._subscriptions[sub_id] = _Subscription(table, dict(filter), on_change)
        logger.debug(f"Subscribed #{sub_id} to {table.value} {filter}")

        def unsubscribe() -> None:
            if self._subscriptions.pop(sub_id, None) is not None:
                logger.debug(f"Unsubscribed #{sub_id} from {table.value}")

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        for sub_id, sub in list(self._subscriptions.items()):
            if not sub.matches(event):
                continue
            try:
                sub.on_change(event)
            except Exception as e:
                logger.error(
                    f"Change subscriber #{sub_id} failed: {e}",
                    exc_info=True, extra={"table": event.table.value},
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)


change_bus = ChangeBus()
