"""MongoDB-backed card ownership repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from shared.dal.card_repository import CardRepository
from shared.db.connection import CARDS_COLLECTION

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class MongoCardRepository(CardRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def release_cards(self, game_id: str, card_ids: list[int]) -> int:
        if not card_ids:
            return 0
        result = await self._db.collection(CARDS_COLLECTION).update_many(
            {"gameId": game_id, "cardId": {"$in": card_ids}},
            {"$set": {"isTaken": False, "takenBy": None}},
        )
        if result.matched_count < len(card_ids):
            logger.warning(
                "some released cards have no durable record",
                game_id=game_id,
                expected=len(card_ids),
                matched=result.matched_count,
            )
        return result.modified_count
