"""Vote Ledger — one vote per (voter, round), tally, completeness, purge.

Invariants:
    - cast upserts: an existing (room, voter, round) row has its target
      overwritten; otherwise a row is inserted
    - The (room_id, voter_id, round) unique constraint backs the upsert, so
      all_votes_in counting rows equals counting distinct voters
    - cancel and purge_round are no-ops when nothing matches

Design Decisions:
    - Insert race (two tabs of the same voter) recovered by falling back to
      update on DuplicateRecordError instead of surfacing a conflict
"""

import logging
from uuid import UUID

from wolfgame.core.domain_types import Table
from wolfgame.core.errors import DuplicateRecordError, ErrorContext, PlayerNotFound
from wolfgame.core.repository_protocols import StorageCollaborator
from wolfgame.core.vote_rules import all_votes_in, check_vote_allowed, tally

logger = logging.getLogger(__name__)


class VoteLedger:
    """Per-round vote records for a room."""

    def __init__(self, storage: StorageCollaborator):
        self._storage = storage

    async def cast(
        self, room_id: UUID, voter_id: UUID, target_id: UUID, round_number: int,
    ) -> dict:
        players = await self._storage.select(Table.PLAYERS, {"room_id": room_id})
        by_id = {p["id"]: p for p in players}
        voter = by_id.get(voter_id)
        if voter is None:
            raise PlayerNotFound(
                str(voter_id), ErrorContext(round_number=round_number),
            )
        check_vote_allowed(voter, by_id.get(target_id))

        key = {"room_id": room_id, "voter_id": voter_id, "round": round_number}
        updated = await self._storage.update(Table.VOTES, key, {"target_id": target_id})
        if updated is not None:
            logger.info(
                "Vote changed",
                extra={"player_id": voter_id, "round_number": round_number},
            )
            return updated
        try:
            vote = await self._storage.insert(Table.VOTES, {**key, "target_id": target_id})
        except DuplicateRecordError:
            vote = await self._storage.update(Table.VOTES, key, {"target_id": target_id})
            if vote is None:
                raise
        logger.info(
            "Vote cast", extra={"player_id": voter_id, "round_number": round_number},
        )
        return vote

    async def cancel(self, room_id: UUID, voter_id: UUID, round_number: int) -> bool:
        """Withdraw the voter's vote for the round. True if one was removed."""
        removed = await self._storage.delete(Table.VOTES, {
            "room_id": room_id, "voter_id": voter_id, "round": round_number,
        })
        return removed > 0

    async def votes_for_round(self, room_id: UUID, round_number: int) -> list[dict]:
        return await self._storage.select(
            Table.VOTES, {"room_id": room_id, "round": round_number},
            order_by=["created_at", "id"],
        )

    async def purge_round(self, room_id: UUID, round_number: int) -> int:
        removed = await self._storage.delete(
            Table.VOTES, {"room_id": room_id, "round": round_number},
        )
        logger.info(
            f"Purged {removed} votes", extra={"round_number": round_number},
        )
        return removed

    async def purge_room(self, room_id: UUID) -> int:
        """Every round's votes (used when a game starts)."""
        return await self._storage.delete(Table.VOTES, {"room_id": room_id})

    @staticmethod
    def tally(votes: list[dict]) -> dict[UUID, int]:
        return tally(votes)

    @staticmethod
    def all_votes_in(votes: list[dict], eligible_voter_count: int) -> bool:
        return all_votes_in(votes, eligible_voter_count)
