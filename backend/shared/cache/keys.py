"""Redis key names shared with the live game service."""


def game_cards_key(game_id: str) -> str:
    """Hash of card_id -> owner player_id for a game."""
    return f"gameCards:{game_id}"


def lobby_members_key(game_id: str) -> str:
    """Set of players still in the lobby (card selection) for a game."""
    return f"gameSessions:{game_id}"


def room_members_key(game_id: str) -> str:
    """Set of players currently in the live game room."""
    return f"gameRooms:{game_id}"
