"""Ephemeral (Redis) store: key names, client setup and scan helpers."""

from shared.cache.keys import game_cards_key, lobby_members_key, room_members_key
from shared.cache.store import EphemeralStore, connect_redis, find_fields_by_value

__all__ = [
    "EphemeralStore",
    "connect_redis",
    "find_fields_by_value",
    "game_cards_key",
    "lobby_members_key",
    "room_members_key",
]
