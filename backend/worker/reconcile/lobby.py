"""Lobby-phase cleanup: free the player's cards and drop them from the game.

The card release is a two-store sequence without a transaction:

1. collect   - scan the Redis card map for cards owned by the player
2. release   - delete them from Redis
3. mirror    - mark the same cards free in MongoDB
4. confirm   - scan again and release anything a concurrent writer added

Every step is safe to repeat, so a redelivered job converges to the same
state. The confirm pass runs once; it narrows the race window with the live
service but cannot close it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.cache import find_fields_by_value, game_cards_key, lobby_members_key, room_members_key
from shared.errors import STORE_OUTAGE_ERRORS
from worker.events import CardsReleasedEvent
from worker.jobs import Phase
from worker.reconcile.types import CleanupResult

if TYPE_CHECKING:
    from shared.cache import EphemeralStore
    from shared.dal import CardRepository
    from worker.events import EventPublisher
    from worker.jobs import CleanupJob
    from worker.reconcile.reset import RoundCloser

logger = structlog.get_logger()


def _split_card_fields(fields: list[str]) -> tuple[list[int], list[str]]:
    """Split hash fields into card ids and fields that are not integers."""
    ids: list[int] = []
    invalid: list[str] = []
    for field in fields:
        try:
            ids.append(int(field))
        except ValueError:
            invalid.append(field)
    return ids, invalid


class LobbyReconciler:
    def __init__(
        self,
        store: EphemeralStore,
        cards: CardRepository,
        closer: RoundCloser,
        publisher: EventPublisher,
    ) -> None:
        self._store = store
        self._cards = cards
        self._closer = closer
        self._publisher = publisher

    async def reconcile(self, job: CleanupJob) -> CleanupResult:
        """Run the lobby cleanup.

        Errors end this job only and are reported in the result. A store
        outage propagates so the consumer backs off.
        """
        result = CleanupResult(reconciler=Phase.LOBBY)
        try:
            await self._run(job, result)
        except STORE_OUTAGE_ERRORS:
            raise
        except Exception as e:
            logger.exception("lobby cleanup failed")
            result.error = f"{type(e).__name__}: {e}"
        return result

    async def _run(self, job: CleanupJob, result: CleanupResult) -> None:
        released = await self._release_cards(job, result)
        result.released_card_ids = released
        if released:
            await self._publisher.publish(
                CardsReleasedEvent(game_id=job.game_id, card_ids=released, released_by=job.player_id),
            )

        await self._store.srem(lobby_members_key(job.game_id), job.player_id)
        await self._store.srem(room_members_key(job.game_id), job.player_id)
        remaining = await self._store.scard(room_members_key(job.game_id))
        result.remaining_members = remaining
        logger.info("removed player from lobby and room", remaining_members=remaining)

        if remaining == 0:
            result.round_ended = await self._closer.close_lobby_round(job)

    async def _release_cards(self, job: CleanupJob, result: CleanupResult) -> list[int]:
        key = game_cards_key(job.game_id)
        owned = await find_fields_by_value(self._store, key, job.player_id)
        if not owned:
            logger.info("player holds no cards")
            return []
        logger.info("releasing cards", card_fields=owned)
        released = await self._release(job, key, owned, result)

        leftovers = await find_fields_by_value(self._store, key, job.player_id)
        if leftovers:
            logger.warning("cards re-acquired during cleanup, releasing again", card_fields=leftovers)
            released += await self._release(job, key, leftovers, result)

        # A card re-taken and released twice is reported once.
        return list(dict.fromkeys(released))

    async def _release(self, job: CleanupJob, key: str, fields: list[str], result: CleanupResult) -> list[int]:
        await self._store.hdel(key, *fields)
        card_ids, invalid = _split_card_fields(fields)
        if invalid:
            # Gone from the card map but absent from cardsReleased, which carries integer ids only.
            result.discarded_fields.extend(invalid)
            logger.error("removed card fields that are not card ids", card_fields=invalid)
        if not card_ids:
            return []
        modified = await self._cards.release_cards(job.game_id, card_ids)
        logger.info("cards released", card_ids=card_ids, durable_modified=modified)
        return card_ids
