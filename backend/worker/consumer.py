"""The queue consumer loop.

Jobs are taken one at a time with a blocking BRPOP and processed to
completion before the next dequeue. Delivery is at-most-once: a job that
fails is logged and gone. A store outage while processing fails the job
and backs the loop off, like a failed dequeue.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from shared.errors import STORE_OUTAGE_ERRORS
from shared.logging import job_log_context
from worker.jobs import JobDecodeError, decode_job

if TYPE_CHECKING:
    from shared.cache import EphemeralStore
    from worker.reconcile import CleanupResult
    from worker.router import PhaseRouter

logger = structlog.get_logger()

DEFAULT_BACKOFF_SECONDS = 5.0
_MAX_LOGGED_PAYLOAD = 200


@dataclass
class ConsumerStats:
    received: int = 0
    processed: int = 0
    malformed: int = 0
    dropped: int = 0  # decoded, but no reconciler for the phase
    failed: int = 0
    backoffs: int = 0


class JobQueueConsumer:
    """Consume cleanup jobs until stopped.

    ``stop()`` cancels an idle consumer (waiting on the queue or backing off)
    right away. A job already being processed is allowed to finish first.
    """

    def __init__(
        self,
        store: EphemeralStore,
        router: PhaseRouter,
        *,
        queue_name: str,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ) -> None:
        self._store = store
        self._router = router
        self._queue_name = queue_name
        self._backoff_seconds = backoff_seconds
        self._task: asyncio.Task[None] | None = None
        self._stopping = False
        self._in_flight = False
        self.stats = ConsumerStats()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the consume loop as a background task."""
        if self.running:
            return
        self._stopping = False
        self._task = asyncio.create_task(self.run(), name="cleanup-consumer")

    async def stop(self) -> None:
        """Stop the loop, letting an in-flight job complete."""
        self._stopping = True
        task = self._task
        if task is None:
            return
        if not self._in_flight:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._task = None
        logger.info("cleanup consumer stopped", **vars(self.stats))

    async def run(self) -> None:
        logger.info("listening for cleanup jobs", queue=self._queue_name)
        while not self._stopping:
            try:
                payload = await self._dequeue()
                if payload is None:
                    continue
                self._in_flight = True
                try:
                    await self.process(payload)
                finally:
                    self._in_flight = False
            except Exception:
                self.stats.backoffs += 1
                logger.exception("error in consumer loop, backing off", backoff_seconds=self._backoff_seconds)
                await asyncio.sleep(self._backoff_seconds)

    async def _dequeue(self) -> str | None:
        # timeout=0 blocks until a job arrives.
        item = await self._store.brpop(self._queue_name, timeout=0)
        if item is None:
            return None
        _key, payload = item
        return payload

    async def process(self, payload: str) -> list[CleanupResult]:
        """Decode and dispatch one payload.

        A bad or failing job never raises. Store outage errors do, after the
        job is counted as failed.
        """
        self.stats.received += 1
        try:
            job = decode_job(payload)
        except JobDecodeError as e:
            self.stats.malformed += 1
            logger.warning("discarding malformed cleanup job", error=str(e), payload=payload[:_MAX_LOGGED_PAYLOAD])
            return []

        with job_log_context(**job.log_fields()):
            logger.info("processing cleanup job")
            try:
                results = await self._router.dispatch(job)
            except STORE_OUTAGE_ERRORS:
                self.stats.failed += 1
                logger.warning("store unavailable, abandoning cleanup job")
                raise
            if not results:
                self.stats.dropped += 1
            elif all(r.ok for r in results):
                self.stats.processed += 1
            else:
                self.stats.failed += 1
            logger.info(
                "cleanup job finished",
                ok=all(r.ok for r in results),
                released_card_ids=[c for r in results for c in r.released_card_ids],
                discarded_fields=[f for r in results for f in r.discarded_fields],
                round_ended=any(r.round_ended for r in results),
            )
        return results
