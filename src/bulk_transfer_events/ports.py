"""Ports consumed by the event publisher."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .envelope import EventEnvelope
    from .topics import ClientConfig, TopicConfig


@runtime_checkable
class IPublishClient(Protocol):
    """
    Port for handing an envelope to the broker.

    Implementations deliver at least once, may be called concurrently without
    external locking, and raise ``PublishError`` when the hand-off fails.
    """

    async def send(
        self,
        envelope: EventEnvelope,
        topic: TopicConfig,
        config: ClientConfig,
    ) -> bool:
        """
        Deliver *envelope* to *topic* using *config*.

        Returns:
            ``True`` once the broker has accepted the message.
        """
        ...


class IIDGenerator(Protocol):
    """
    Protocol for event identifier generation strategies.
    Allows swapping UUIDv4 for UUIDv7, Snowflake, or a fixed sequence in tests.
    """

    def next_id(self) -> str:
        """Generates the next unique identifier."""
        ...


class UUID4Generator(IIDGenerator):
    """Default ID generator using UUIDv4."""

    def next_id(self) -> str:
        return str(uuid.uuid4())


class IClock(Protocol):
    def now(self) -> datetime: ...


class UTCClock(IClock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
