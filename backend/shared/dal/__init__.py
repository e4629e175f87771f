"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.card_repository import CardRepository
from shared.dal.game_repository import GameRepository
from shared.dal.models import CardRecord, GameAggregate, PlayerSessionRecord, SessionStatus, UserRecord
from shared.dal.session_repository import PlayerSessionRepository
from shared.dal.user_repository import UserRepository

__all__ = [
    "CardRecord",
    "CardRepository",
    "GameAggregate",
    "GameRepository",
    "PlayerSessionRecord",
    "PlayerSessionRepository",
    "SessionStatus",
    "UserRecord",
    "UserRepository",
]
