"""Abstract interface for durable card ownership records."""

from abc import ABC, abstractmethod


class CardRepository(ABC):
    """Durable mirror of per-game card ownership."""

    @abstractmethod
    async def release_cards(self, game_id: str, card_ids: list[int]) -> int:
        """Mark the given cards free (not taken, no owner). Return the number modified."""
