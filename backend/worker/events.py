"""Broadcast events announcing cleanup outcomes to the other services."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from shared.cache import EphemeralStore

logger = structlog.get_logger()


class EventType(StrEnum):
    CARDS_RELEASED = "cardsReleased"
    FULL_GAME_RESET = "fullGameReset"


class BroadcastEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event: EventType
    game_id: str


class CardsReleasedEvent(BroadcastEvent):
    event: Literal[EventType.CARDS_RELEASED] = EventType.CARDS_RELEASED
    card_ids: list[int]
    released_by: str


class FullGameResetEvent(BroadcastEvent):
    event: Literal[EventType.FULL_GAME_RESET] = EventType.FULL_GAME_RESET
    game_session_id: str


class EventPublisher:
    """Serialize events as camelCase JSON and publish them on one channel.

    Fire-and-forget: a failed publish is logged and dropped. Whatever the
    caller already wrote to the stores stays written.
    """

    def __init__(self, store: EphemeralStore, channel: str) -> None:
        self._store = store
        self._channel = channel

    async def publish(self, event: BroadcastEvent) -> bool:
        """Publish an event. Return False if the publish failed."""
        message = event.model_dump_json(by_alias=True)
        try:
            receivers = await self._store.publish(self._channel, message)
        except (RedisError, OSError):
            logger.exception("failed to publish event", event_type=event.event, channel=self._channel)
            return False
        logger.info("published event", event_type=event.event, channel=self._channel, receivers=receivers)
        return True
