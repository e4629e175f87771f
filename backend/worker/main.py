"""Process entry point: connect both stores, then serve until signalled."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
import uvicorn

from shared.cache import connect_redis
from shared.db import (
    Database,
    MongoCardRepository,
    MongoGameRepository,
    MongoPlayerSessionRepository,
    MongoUserRepository,
)
from shared.errors import StoreUnavailableError
from shared.logging import setup_logging
from worker.consumer import JobQueueConsumer
from worker.events import EventPublisher
from worker.health import create_app
from worker.reconcile import LiveGameReconciler, LobbyReconciler, RoundCloser
from worker.router import PhaseRouter
from worker.settings import WorkerSettings

if TYPE_CHECKING:
    from shared.cache import EphemeralStore

logger = structlog.get_logger()


def build_consumer(settings: WorkerSettings, store: EphemeralStore, db: Database) -> JobQueueConsumer:
    """Wire the consumer, router and reconcilers over connected stores."""
    publisher = EventPublisher(store, settings.events_channel)
    games = MongoGameRepository(db, write_timeout_ms=int(settings.durable_write_timeout_seconds * 1000))
    closer = RoundCloser(store, games, publisher, write_timeout=settings.durable_write_timeout_seconds)
    router = PhaseRouter(
        LobbyReconciler(store, MongoCardRepository(db), closer, publisher),
        LiveGameReconciler(store, MongoPlayerSessionRepository(db), MongoUserRepository(db), closer),
        lobby_fallback=settings.live_game_lobby_fallback,
    )
    return JobQueueConsumer(
        store,
        router,
        queue_name=settings.queue_name,
        backoff_seconds=settings.backoff_seconds,
    )


async def run_worker(settings: WorkerSettings) -> None:
    """Connect MongoDB then Redis; no job is taken unless both answer."""
    db = Database(settings.mongodb_uri, settings.mongodb_database)
    await db.connect()
    try:
        redis = await connect_redis(settings.redis_url)
    except StoreUnavailableError:
        await db.close()
        raise

    consumer = build_consumer(settings, redis, db)
    config = uvicorn.Config(
        create_app(consumer),
        host=settings.health_host,
        port=settings.health_port,
        log_config=None,
    )
    try:
        # uvicorn handles SIGINT/SIGTERM; its shutdown runs the app lifespan, which drains the consumer.
        await uvicorn.Server(config).serve()
    finally:
        await consumer.stop()
        await redis.aclose()
        await db.close()


def main() -> None:  # pragma: no cover
    settings = WorkerSettings()  # type: ignore[call-arg]
    setup_logging(log_dir=settings.log_dir)
    logger.info("starting disconnect cleanup worker")
    try:
        asyncio.run(run_worker(settings))
    except StoreUnavailableError:
        logger.exception("worker failed to start")
        raise SystemExit(1) from None
