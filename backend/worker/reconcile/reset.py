"""Decide and perform the "room is empty -> end the round" transition.

Only an open (not yet ended) aggregate is ever moved to ended, and the
``fullGameReset`` event is published only when this worker performed that
move. Replaying the same job therefore ends nothing and announces nothing.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from shared.cache import game_cards_key
from worker.events import FullGameResetEvent

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from shared.cache import EphemeralStore
    from shared.dal import GameAggregate, GameRepository
    from worker.events import EventPublisher
    from worker.jobs import CleanupJob

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RoundCloser:
    def __init__(
        self,
        store: EphemeralStore,
        games: GameRepository,
        publisher: EventPublisher,
        *,
        write_timeout: float,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._games = games
        self._publisher = publisher
        self._write_timeout = write_timeout
        self._clock = clock

    async def close_lobby_round(self, job: CleanupJob) -> bool:
        """End the game's current round, drop its card map, announce the reset.

        Returns True when a round was ended by this call.
        """
        ended = await self._bounded(self._games.end_current_round(job.game_id, self._clock()))
        await self._store.delete(game_cards_key(job.game_id))
        logger.info("lobby empty, card map removed", game_id=job.game_id)
        if ended is None:
            logger.info("no open round to end", game_id=job.game_id)
            return False
        logger.info("round ended", game_id=job.game_id, game_session_id=ended.game_session_id)
        await self._announce(job)
        return True

    async def close_live_round(self, job: CleanupJob) -> bool:
        """End the live round for the job's session if it is still active.

        Returns True when a round was ended by this call.
        """
        if not job.has_session:
            logger.info("live room empty but job has no session id, nothing to end")
            return False
        game = await self._games.get_open_by_session(job.game_session_id)
        if game is None or not game.is_active:
            logger.info("no active round for session", game_session_id=job.game_session_id)
            return False
        ended = await self._bounded(self._games.end_session(job.game_session_id, self._clock()))
        if ended is None:
            # Another writer ended it between the read and the update.
            return False
        logger.info("all live players left, round ended", game_id=job.game_id, game_session_id=job.game_session_id)
        await self._announce(job)
        return True

    async def _bounded(self, write: Awaitable[GameAggregate | None]) -> GameAggregate | None:
        async with asyncio.timeout(self._write_timeout):
            return await write

    async def _announce(self, job: CleanupJob) -> None:
        await self._publisher.publish(FullGameResetEvent(game_id=job.game_id, game_session_id=job.game_session_id))
