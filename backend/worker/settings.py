"""Cleanup worker configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class WorkerSettings(BaseSettings):
    model_config = {"env_prefix": "WORKER_", "populate_by_name": True}

    # Connection strings keep the unprefixed names shared with the live service.
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL", min_length=1)
    mongodb_uri: str = Field(validation_alias="MONGODB_URI", min_length=1)
    mongodb_database: str = Field(default="bingo", min_length=1)

    queue_name: str = Field(default="disconnect-cleanup-queue", min_length=1)
    events_channel: str = Field(default="game-events", min_length=1)

    backoff_seconds: float = Field(default=5.0, gt=0)
    durable_write_timeout_seconds: float = Field(default=5.0, gt=0)
    # Run the lobby cleanup after the live-game cleanup to free cards a live-phase player still holds.
    live_game_lobby_fallback: bool = True

    health_host: str = "0.0.0.0"  # noqa: S104
    health_port: int = Field(default=8080, ge=1, le=65535)
    log_dir: str | None = None
