"""Abstract interface for the user fields owned by the worker."""

from abc import ABC, abstractmethod


class UserRepository(ABC):
    @abstractmethod
    async def clear_reservation(self, player_id: str, game_id: str) -> bool:
        """Unset reserved_for_game_id only if it currently equals game_id.

        Returns True when a reservation was cleared.
        """
