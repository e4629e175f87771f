"""MongoDB-backed player session repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.dal.models import PLAYER_ID_KEY, SESSION_ID_KEY
from shared.dal.session_repository import PlayerSessionRepository
from shared.db.connection import PLAYER_SESSIONS_COLLECTION

if TYPE_CHECKING:
    from shared.dal.models import SessionStatus
    from shared.db.connection import Database


class MongoPlayerSessionRepository(PlayerSessionRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def set_status(self, game_session_id: str, player_id: str, status: SessionStatus) -> bool:
        result = await self._db.collection(PLAYER_SESSIONS_COLLECTION).update_one(
            {SESSION_ID_KEY: game_session_id, PLAYER_ID_KEY: player_id},
            {"$set": {"status": str(status)}},
        )
        return result.matched_count > 0
