"""MongoDB connection management."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from shared.errors import StoreUnavailableError

if TYPE_CHECKING:
    from pymongo.asynchronous.collection import AsyncCollection
    from pymongo.asynchronous.database import AsyncDatabase

logger = structlog.get_logger()

# Collection names follow the live service's ODM pluralization.
CARDS_COLLECTION = "gamecards"
GAMES_COLLECTION = "gamecontrols"
PLAYER_SESSIONS_COLLECTION = "playersessions"
USERS_COLLECTION = "users"

_SERVER_SELECTION_TIMEOUT_MS = 5000


class Database:
    """Async MongoDB client wrapper owning one database handle.

    Index creation belongs to the live service; this wrapper only connects
    and checks the server answers.
    """

    def __init__(self, uri: str, name: str, *, server_selection_timeout_ms: int = _SERVER_SELECTION_TIMEOUT_MS) -> None:
        self._uri = uri
        self._name = name
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._client: AsyncMongoClient[dict[str, Any]] | None = None

    @property
    def db(self) -> AsyncDatabase[dict[str, Any]]:
        """Return the database handle or raise if disconnected."""
        if self._client is None:
            raise RuntimeError("Database is not connected")
        return self._client[self._name]

    def collection(self, name: str) -> AsyncCollection[dict[str, Any]]:
        return self.db[name]

    async def connect(self) -> None:
        """Open the client and ping the server. Raise StoreUnavailableError on failure."""
        client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._server_selection_timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as exc:
            await client.close()
            raise StoreUnavailableError(f"MongoDB is not reachable (database {self._name!r})") from exc
        self._client = client
        logger.info("connected to mongodb", database=self._name)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
