"""MongoDB-backed user repository (reservation field only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.dal.models import PLAYER_ID_KEY
from shared.dal.user_repository import UserRepository
from shared.db.connection import USERS_COLLECTION

if TYPE_CHECKING:
    from shared.db.connection import Database


def _stored_player_id(player_id: str) -> int | str:
    """users.telegramId is a number; ids that are not numeric are matched as given."""
    try:
        return int(player_id)
    except ValueError:
        return player_id


class MongoUserRepository(UserRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def clear_reservation(self, player_id: str, game_id: str) -> bool:
        # The reservedForGameId condition keeps a reservation for a newer game intact.
        result = await self._db.collection(USERS_COLLECTION).update_one(
            {PLAYER_ID_KEY: _stored_player_id(player_id), "reservedForGameId": game_id},
            {"$unset": {"reservedForGameId": ""}},
        )
        return result.modified_count > 0
