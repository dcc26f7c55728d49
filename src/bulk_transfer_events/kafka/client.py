"""KafkaPublishClient: IPublishClient backed by aiokafka producers."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from ..exceptions import ConfigurationError, PublishError
from ..serialization import EnvelopeSerializer
from .connection import KafkaConnectionManager

if TYPE_CHECKING:
    from ..envelope import EventEnvelope
    from ..topics import ClientConfig, TopicConfig

logger = logging.getLogger("bulk_transfer_events.kafka")

_CHARSETS = {"utf8": "utf-8", "utf-8": "utf-8", "ascii": "ascii", "latin1": "latin-1"}

_CacheKey = tuple[str, tuple[tuple[str, Any], ...]]


def _charset(config: ClientConfig) -> str:
    raw = str(config.options.get("messageCharset", "utf8")).lower()
    return _CHARSETS.get(raw, raw)


class KafkaPublishClient:
    """Kafka adapter implementing IPublishClient.

    One producer is started per topic and producer config on first use and
    reused afterwards; ``send`` waits for broker acknowledgment according to
    the configured acks.
    """

    def __init__(self, *, serializer: EnvelopeSerializer | None = None) -> None:
        """Configure client.

        Args:
            serializer: Used to encode envelopes; default is built per send
                from the ``messageCharset`` option of the client config.
        """
        self._serializer = serializer
        self._producers: dict[_CacheKey, AIOKafkaProducer] = {}
        self._connections: dict[_CacheKey, KafkaConnectionManager] = {}
        self._lock = asyncio.Lock()

    async def _get_producer(self, topic: str, config: ClientConfig) -> AIOKafkaProducer:
        """Create or return the producer for *topic* under *config*."""
        connection = KafkaConnectionManager(config)
        key = (topic, connection.cache_key())
        async with self._lock:
            producer = self._producers.get(key)
            if producer is not None:
                return producer
            try:
                producer = AIOKafkaProducer(**connection.producer_config())
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid producer configuration for {topic}: {e}", cause=e
                ) from e
            try:
                await producer.start()
            except BaseException:
                await producer.stop()
                raise
            logger.debug(
                "Started producer for %s on %s", topic, connection.bootstrap_servers
            )
            self._producers[key] = producer
            self._connections[key] = connection
            return producer

    async def send(
        self,
        envelope: EventEnvelope,
        topic: TopicConfig,
        config: ClientConfig,
    ) -> bool:
        """Serialize *envelope* and wait for the broker to accept it."""
        serializer = self._serializer or EnvelopeSerializer(charset=_charset(config))
        body = serializer.serialize(envelope)
        key = topic.key.encode(serializer.charset) if topic.key is not None else None
        try:
            producer = await self._get_producer(topic.topic_name, config)
            await producer.send_and_wait(
                topic.topic_name, value=body, key=key, partition=topic.partition
            )
        except KafkaError as e:
            raise PublishError(
                f"Failed to publish {envelope.id} to {topic.topic_name}: {e}",
                correlation_id=envelope.id,
                cause=e,
            ) from e
        return True

    async def close(self) -> None:
        """Stop all producers."""
        async with self._lock:
            producers = list(self._producers.values())
            self._producers.clear()
            self._connections.clear()
        for producer in producers:
            await producer.stop()

    async def health_check(self) -> bool:
        """Return True if every cluster with an active producer is reachable."""
        connections = list(self._connections.values())
        if not connections:
            return False
        results = await asyncio.gather(*(c.health_check() for c in connections))
        return all(results)
