"""Cleanup job payloads and their decoding.

Identifiers are normalized here, once: player ids may arrive as numbers or
padded strings, and everything downstream compares plain stripped strings.
"""

import json
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

NO_SESSION_ID = "NO_SESSION_ID"


class Phase(StrEnum):
    LOBBY = "lobby"
    LIVE_GAME = "liveGame"


# Tag used by older producers for the live-game phase.
_PHASE_ALIASES = {"joinGame": Phase.LIVE_GAME}


class JobDecodeError(ValueError):
    """The queue payload is not a usable cleanup job."""


class CleanupJob(BaseModel):
    """One disconnect cleanup request.

    ``phase`` stays a plain string so an unknown tag survives decoding and
    the router can report it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    player_id: str = Field(validation_alias=AliasChoices("playerId", "telegramId", "player_id"), min_length=1)
    game_id: str = Field(validation_alias=AliasChoices("gameId", "game_id"), min_length=1)
    game_session_id: str = Field(
        default=NO_SESSION_ID,
        validation_alias=AliasChoices("gameSessionId", "GameSessionId", "game_session_id"),
    )
    phase: str = Field(min_length=1)

    @field_validator("player_id", "game_id", mode="before")
    @classmethod
    def normalize_identifier(cls, v: object) -> str:
        # JSON producers may encode a numeric id as 123.0
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError("identifier must be a string or an integer")
        return str(v).strip()

    @field_validator("game_session_id", mode="before")
    @classmethod
    def normalize_session_id(cls, v: object) -> str:
        if v is None:
            return NO_SESSION_ID
        if not isinstance(v, str):
            raise ValueError("gameSessionId must be a string")
        return v.strip() or NO_SESSION_ID

    @field_validator("phase", mode="before")
    @classmethod
    def normalize_phase(cls, v: object) -> str:
        if not isinstance(v, str):
            raise ValueError("phase must be a string")
        v = v.strip()
        return str(_PHASE_ALIASES.get(v, v))

    @property
    def has_session(self) -> bool:
        return self.game_session_id != NO_SESSION_ID

    def log_fields(self) -> dict[str, str]:
        return {
            "player_id": self.player_id,
            "game_id": self.game_id,
            "game_session_id": self.game_session_id,
            "phase": self.phase,
        }


def decode_job(payload: str | bytes) -> CleanupJob:
    """Parse a raw queue payload. Raise JobDecodeError for anything unusable."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JobDecodeError(f"payload is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise JobDecodeError("payload must be a JSON object")
    try:
        return CleanupJob.model_validate(data)
    except ValidationError as e:
        raise JobDecodeError(str(e)) from e
