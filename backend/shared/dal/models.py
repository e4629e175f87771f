"""Persistence models for the data access layer.

Field aliases match the document keys written by the live game service.
Most are camelCase, generated from the snake_case names. Two are not:
the round id is stored as ``GameSessionId`` and players are keyed by
``telegramId``.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Document keys that do not follow the camelCase convention.
SESSION_ID_KEY = "GameSessionId"
PLAYER_ID_KEY = "telegramId"


class SessionStatus(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED_DEDUCTION = "failed_deduction"
    WINNER = "winner"
    LOSER = "loser"


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


class CardRecord(_Document):
    """Durable mirror of one card's ownership, unique on (game_id, card_id)."""

    game_id: str
    card_id: int
    is_taken: bool = False
    taken_by: str | None = None


class GameAggregate(_Document):
    """The durable record of one round of a game.

    At most one aggregate per game_id has ended_at unset: the current round.
    pending (not active, not ended) -> active -> ended.
    """

    game_id: str
    game_session_id: str = Field(alias=SESSION_ID_KEY)
    is_active: bool = False
    ended_at: datetime | None = None
    players: list[str] = Field(default_factory=list)
    stake_amount: float = 0
    total_cards: int = 0
    prize_amount: float = 0
    house_profit: float = 0
    created_at: datetime | None = None
    created_by: str | None = None

    @property
    def is_ended(self) -> bool:
        return self.ended_at is not None


class PlayerSessionRecord(_Document):
    """A player's slot in one round, unique on (player_id, game_session_id)."""

    game_session_id: str = Field(alias=SESSION_ID_KEY)
    player_id: str = Field(alias=PLAYER_ID_KEY)
    card_id: int
    status: SessionStatus = SessionStatus.CONNECTED
    joined_at: datetime | None = None


class UserRecord(_Document):
    """The slice of the user document the worker reads and writes."""

    player_id: str = Field(alias=PLAYER_ID_KEY)
    reserved_for_game_id: str | None = None

    @field_validator("player_id", mode="before")
    @classmethod
    def stringify_player_id(cls, v: object) -> object:
        # users.telegramId is stored as a number
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v
