"""MongoDB layer: connection management and repository implementations."""

from shared.db.card_repository import MongoCardRepository
from shared.db.connection import Database
from shared.db.game_repository import MongoGameRepository
from shared.db.session_repository import MongoPlayerSessionRepository
from shared.db.user_repository import MongoUserRepository

__all__ = [
    "Database",
    "MongoCardRepository",
    "MongoGameRepository",
    "MongoPlayerSessionRepository",
    "MongoUserRepository",
]
