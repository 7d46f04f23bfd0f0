"""Change Propagation — keeps one client's RoomView convergent with shared storage.

Invariants:
    - Notifications and the polling tick are the same trigger: "re-read and
      re-derive". No event payload is ever applied incrementally
    - Duplicate, reordered or missing notifications cannot diverge the view;
      the poll (default every 3s) is the correctness backstop
    - Background refresh errors are logged and swallowed, never raised
    - While the room is voting, every refresh hands the roster to
      RoundController.apply_win_condition
    - A view is emitted to updates() only when its snapshot changed

Design Decisions:
    - Subscriptions only set an asyncio.Event: bursts of row changes
      (finalize touches players, votes and the room) coalesce into one re-read
    - One RoomSync per connected client, mirroring per-client subscriptions
      on the storage change stream
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from uuid import UUID

from wolfgame.core.domain_types import RoomStatus, Table
from wolfgame.core.errors import WolfGameError
from wolfgame.core.repository_protocols import ChangeEvent, Unsubscribe
from wolfgame.core.room_codes import normalize_room_code
from wolfgame.core.room_view import LocalReveal, RoomView
from wolfgame.services.room_service import RoomService

logger = logging.getLogger(__name__)


class RoomSync:
    """Subscription + polling driven reconciler for one viewer of one room."""

    def __init__(
        self,
        service: RoomService,
        room_code: str,
        viewer_id: UUID | None = None,
        poll_interval: float | None = None,
    ):
        self._service = service
        self.room_code = normalize_room_code(room_code)
        self.viewer_id = viewer_id
        self._poll_interval = (
            poll_interval if poll_interval is not None
            else service.settings.poll_interval_seconds
        )
        self.view: RoomView | None = None
        self.local_reveal: LocalReveal | None = None
        self._dirty = asyncio.Event()
        self._refresh_lock = asyncio.Lock()
        self._updates: asyncio.Queue[RoomView] = asyncio.Queue()
        self._last_snapshot: dict | None = None
        self._unsubscribes: list[Unsubscribe] = []
        self._task: asyncio.Task | None = None

    # ─── Lifecycle ───────────────────────────────────────────

    async def start(self) -> RoomView:
        """Initial load (errors propagate), then subscribe and start polling."""
        view = await self._derive()
        self._publish(view)
        room_id = view.room["id"]
        storage = self._service.storage
        self._unsubscribes = [
            storage.subscribe(Table.ROOMS, {"code": self.room_code}, self._on_change),
            storage.subscribe(Table.PLAYERS, {"room_id": room_id}, self._on_change),
            storage.subscribe(Table.VOTES, {"room_id": room_id}, self._on_change),
        ]
        self._task = asyncio.create_task(self._run())
        logger.debug("Room sync started", extra={"room_code": self.room_code})
        return view

    async def stop(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def __aenter__(self) -> "RoomSync":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    # ─── Triggers ────────────────────────────────────────────

    def _on_change(self, event: ChangeEvent) -> None:
        self._dirty.set()

    def mark_dirty(self) -> None:
        self._dirty.set()

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._dirty.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass
            self._dirty.clear()
            await self.refresh()

    # ─── Reconciliation ──────────────────────────────────────

    async def refresh(self) -> RoomView | None:
        """Re-read and re-derive. Best-effort: failures keep the last view."""
        async with self._refresh_lock:
            try:
                view = await self._derive()
            except WolfGameError as e:
                logger.warning(
                    f"Room refresh failed: {e.message}",
                    extra={"room_code": self.room_code, "error_code": e.code},
                )
                return self.view
            except Exception as e:
                logger.error(
                    f"Room refresh failed unexpectedly: {e}",
                    exc_info=True, extra={"room_code": self.room_code},
                )
                return self.view
            self._publish(view)
            return view

    async def _derive(self) -> RoomView:
        view = await self._service.load_view(
            self.room_code, self.viewer_id, self.local_reveal,
        )
        if view.status == RoomStatus.VOTING:
            room = await self._service.controller.apply_win_condition(
                view.room, view.players,
            )
            if room is not view.room:
                view = RoomView(
                    room=room,
                    players=view.players,
                    votes=view.votes,
                    viewer_id=view.viewer_id,
                    local_reveal=view.local_reveal,
                    min_players_to_start=view.min_players_to_start,
                )
        return view

    def _publish(self, view: RoomView) -> None:
        self.view = view
        snapshot = view.to_snapshot()
        if snapshot == self._last_snapshot:
            return
        self._last_snapshot = snapshot
        self._updates.put_nowait(view)

    # ─── Consumption ─────────────────────────────────────────

    async def next_update(self, timeout: float | None = None) -> RoomView | None:
        """Next changed view, or None when `timeout` elapses first."""
        if timeout is not None and timeout <= 0:
            try:
                return self._updates.get_nowait()
            except asyncio.QueueEmpty:
                return None
        try:
            return await asyncio.wait_for(self._updates.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    async def updates(self) -> AsyncIterator[RoomView]:
        while True:
            yield await self._updates.get()
