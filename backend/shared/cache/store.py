"""Ephemeral store access: the Redis command subset the worker relies on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.errors import StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger()

DEFAULT_SCAN_BATCH = 100


class EphemeralStore(Protocol):
    """Structural subset of ``redis.asyncio.Redis`` used by the worker.

    Values are expected as ``str`` (clients are created with
    ``decode_responses=True``).
    """

    def hscan_iter(
        self,
        name: str,
        match: str | None = None,
        count: int | None = None,
    ) -> AsyncIterator[tuple[str, str]]: ...

    async def hdel(self, name: str, *keys: str) -> int: ...

    async def delete(self, *names: str) -> int: ...

    async def srem(self, name: str, *values: str) -> int: ...

    async def scard(self, name: str) -> int: ...

    async def publish(self, channel: str, message: str) -> int: ...

    async def brpop(self, keys: str | list[str], timeout: float = 0) -> tuple[str, str] | None: ...

    async def ping(self) -> bool: ...


async def connect_redis(url: str) -> Redis:
    """Create a decoded-response client and verify the server answers PING."""
    client = Redis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        await client.aclose()
        raise StoreUnavailableError(f"Redis is not reachable at {url}") from exc
    logger.info("connected to redis")
    return client


async def find_fields_by_value(
    store: EphemeralStore,
    hash_key: str,
    owner_id: str,
    batch_size: int = DEFAULT_SCAN_BATCH,
) -> list[str]:
    """Return every field of ``hash_key`` whose trimmed value equals ``owner_id``.

    Walks the whole hash with HSCAN rather than HGETALL so large card maps are
    read in batches. HSCAN may return a field more than once while the hash is
    being rehashed; the result is de-duplicated, first occurrence wins.
    """
    matches: dict[str, None] = {}
    async for field, value in store.hscan_iter(hash_key, count=batch_size):
        if str(value).strip() == owner_id:
            matches[field] = None
    return list(matches)
