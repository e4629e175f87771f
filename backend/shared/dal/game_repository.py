"""Abstract interface for game round (aggregate) persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from shared.dal.models import GameAggregate


class GameRepository(ABC):
    """Abstract interface for game aggregates.

    Both ``end_*`` methods only touch an aggregate whose ended_at is unset,
    and return the aggregate as it was before the update, or None when
    nothing matched (already ended or never existed).
    """

    @abstractmethod
    async def get_open_by_session(self, game_session_id: str) -> GameAggregate | None: ...

    @abstractmethod
    async def end_current_round(self, game_id: str, ended_at: datetime) -> GameAggregate | None:
        """End the game's current round and clear its player list."""

    @abstractmethod
    async def end_session(self, game_session_id: str, ended_at: datetime) -> GameAggregate | None:
        """End the round identified by its session id."""
