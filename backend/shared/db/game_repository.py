"""MongoDB-backed game aggregate repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pymongo import ReturnDocument

from shared.dal.game_repository import GameRepository
from shared.dal.models import SESSION_ID_KEY, GameAggregate
from shared.db.connection import GAMES_COLLECTION

if TYPE_CHECKING:
    from datetime import datetime

    from shared.db.connection import Database

DEFAULT_WRITE_TIMEOUT_MS = 5000


class MongoGameRepository(GameRepository):
    """Game aggregates in the ``gamecontrols`` collection.

    The end-of-round writes are single ``findOneAndUpdate`` commands filtered
    on ``endedAt: null``, so a replayed job matches nothing. They carry
    ``maxTimeMS`` so a struggling server cannot stall the worker.
    """

    def __init__(self, db: Database, *, write_timeout_ms: int = DEFAULT_WRITE_TIMEOUT_MS) -> None:
        self._db = db
        self._write_timeout_ms = write_timeout_ms

    async def get_open_by_session(self, game_session_id: str) -> GameAggregate | None:
        doc = await self._db.collection(GAMES_COLLECTION).find_one(
            {SESSION_ID_KEY: game_session_id, "endedAt": None},
        )
        return GameAggregate.model_validate(doc) if doc is not None else None

    async def end_current_round(self, game_id: str, ended_at: datetime) -> GameAggregate | None:
        return await self._end(
            {"gameId": game_id, "endedAt": None},
            {"isActive": False, "endedAt": ended_at, "players": []},
        )

    async def end_session(self, game_session_id: str, ended_at: datetime) -> GameAggregate | None:
        return await self._end(
            {SESSION_ID_KEY: game_session_id, "endedAt": None},
            {"isActive": False, "endedAt": ended_at},
        )

    async def _end(self, query: dict[str, Any], fields: dict[str, Any]) -> GameAggregate | None:
        doc = await self._db.collection(GAMES_COLLECTION).find_one_and_update(
            query,
            {"$set": fields},
            return_document=ReturnDocument.BEFORE,
            maxTimeMS=self._write_timeout_ms,
        )
        return GameAggregate.model_validate(doc) if doc is not None else None
