"""Live-game cleanup: mark the player disconnected and leave the live room."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.cache import room_members_key
from shared.dal import SessionStatus
from shared.errors import STORE_OUTAGE_ERRORS
from worker.jobs import Phase
from worker.reconcile.types import CleanupResult

if TYPE_CHECKING:
    from shared.cache import EphemeralStore
    from shared.dal import PlayerSessionRepository, UserRepository
    from worker.jobs import CleanupJob
    from worker.reconcile.reset import RoundCloser

logger = structlog.get_logger()


class LiveGameReconciler:
    """Converge a live-round disconnect.

    The player's session record is kept (status ``disconnected``) so the
    round's history stays complete.
    """

    def __init__(
        self,
        store: EphemeralStore,
        sessions: PlayerSessionRepository,
        users: UserRepository,
        closer: RoundCloser,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._users = users
        self._closer = closer

    async def reconcile(self, job: CleanupJob) -> CleanupResult:
        result = CleanupResult(reconciler=Phase.LIVE_GAME)
        try:
            await self._run(job, result)
        except STORE_OUTAGE_ERRORS:
            raise
        except Exception as e:
            logger.exception("live game cleanup failed")
            result.error = f"{type(e).__name__}: {e}"
        return result

    async def _run(self, job: CleanupJob, result: CleanupResult) -> None:
        if job.has_session:
            found = await self._sessions.set_status(job.game_session_id, job.player_id, SessionStatus.DISCONNECTED)
            if found:
                logger.info("player session marked disconnected")
            else:
                logger.warning("no player session record to mark disconnected")

        await self._store.srem(room_members_key(job.game_id), job.player_id)
        logger.info("removed player from live room")

        if await self._users.clear_reservation(job.player_id, job.game_id):
            logger.info("cleared balance reservation")

        remaining = await self._store.scard(room_members_key(job.game_id))
        result.remaining_members = remaining
        if remaining == 0:
            result.round_ended = await self._closer.close_live_round(job)
