"""Abstract interface for player session records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import SessionStatus


class PlayerSessionRepository(ABC):
    """Player slots per round. Records are kept for history; this interface cannot delete them."""

    @abstractmethod
    async def set_status(self, game_session_id: str, player_id: str, status: SessionStatus) -> bool:
        """Update one record's status. Return False if no record matched."""
