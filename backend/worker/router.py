from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from worker.jobs import Phase

if TYPE_CHECKING:
    from worker.jobs import CleanupJob
    from worker.reconcile import CleanupResult, Reconciler

logger = structlog.get_logger()


class PhaseRouter:
    """
    Routes a cleanup job to the reconciler for its phase.

    With ``lobby_fallback`` a live-game job also runs the lobby cleanup
    afterwards, so a player who reached the live room while still owning
    lobby cards gets them freed. Both reconcilers are idempotent, and the
    round can only be ended once, so the double run cannot announce two resets.
    """

    def __init__(self, lobby: Reconciler, live_game: Reconciler, *, lobby_fallback: bool = True) -> None:
        self._lobby = lobby
        self._live_game = live_game
        self._lobby_fallback = lobby_fallback

    async def dispatch(self, job: CleanupJob) -> list[CleanupResult]:
        """Run the job's reconcilers in order. An unknown phase runs nothing."""
        if job.phase == Phase.LOBBY:
            return [await self._lobby.reconcile(job)]
        if job.phase == Phase.LIVE_GAME:
            results = [await self._live_game.reconcile(job)]
            if self._lobby_fallback:
                results.append(await self._lobby.reconcile(job))
            return results
        logger.warning("unknown job phase, dropping job", phase=job.phase)
        return []
