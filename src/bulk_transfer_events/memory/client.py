"""InMemoryPublishClient: IPublishClient with assertion helpers for tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..envelope import EventEnvelope
    from ..topics import ClientConfig, TopicConfig


@dataclass(frozen=True)
class SentMessage:
    envelope: EventEnvelope
    topic: TopicConfig
    config: ClientConfig


class InMemoryPublishClient:
    """In-memory publish client that records every send.

    ``fail_with`` makes subsequent sends raise the given exception until it is
    reset to ``None``; ``get_sent()`` and ``assert_published()`` support test
    assertions.
    """

    def __init__(self, fail_with: BaseException | None = None) -> None:
        self._sent: list[SentMessage] = []
        self.fail_with = fail_with
        self.attempts = 0

    async def send(
        self,
        envelope: EventEnvelope,
        topic: TopicConfig,
        config: ClientConfig,
    ) -> bool:
        """Record the envelope, or raise the configured failure."""
        self.attempts += 1
        if self.fail_with is not None:
            raise self.fail_with
        self._sent.append(SentMessage(envelope=envelope, topic=topic, config=config))
        return True

    def get_sent(self) -> list[SentMessage]:
        """Return all successful sends in order."""
        return list(self._sent)

    def assert_published(
        self,
        event_type: str,
        count: int = 1,
        topic: str | None = None,
    ) -> None:
        """Assert that exactly `count` envelopes with this event type were sent.

        Optionally restrict to a specific topic name. Raises AssertionError if not met.
        """
        sent = self._sent
        if topic is not None:
            sent = [s for s in sent if s.topic.topic_name == topic]
        matching = [s for s in sent if s.envelope.event.type == event_type]
        assert len(matching) == count, (
            f"Expected {count} envelope(s) with event type={event_type!r}, "
            f"got {len(matching)}. Sent: "
            f"{[s.envelope.event.type for s in sent]}"
        )

    def clear(self) -> None:
        """Forget recorded sends (for test teardown)."""
        self._sent.clear()
        self.attempts = 0
