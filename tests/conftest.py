"""Pytest fixtures for bulk-transfer-events tests."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any

import pytest

from bulk_transfer_events.config import PublisherSettings
from bulk_transfer_events.memory import InMemoryPublishClient
from bulk_transfer_events.publisher import EventPublisher

FIXED_NOW = datetime(2024, 3, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def producer_config(client_id: str) -> dict[str, Any]:
    return {
        "config": {
            "options": {"messageCharset": "utf8"},
            "rdkafkaConf": {
                "metadata.broker.list": "localhost:9092",
                "client.id": client_id,
                "event_cb": True,
                "dr_cb": True,
            },
            "topicConf": {"request.required.acks": "all"},
        }
    }


@pytest.fixture
def config_document() -> dict[str, Any]:
    """Configuration document in the service's JSON layout."""
    return {
        "KAFKA": {
            "TOPIC_TEMPLATES": {
                "GENERAL_TOPIC_TEMPLATE": {
                    "TEMPLATE": "topic-{{functionality}}-{{action}}"
                }
            },
            "PRODUCER": {
                "BULK": {
                    "PREPARE": producer_config("bulk-prepare-producer"),
                    "FULFIL": producer_config("bulk-fulfil-producer"),
                }
            },
        }
    }


@pytest.fixture
def settings(config_document: dict[str, Any]) -> PublisherSettings:
    return PublisherSettings.from_mapping(config_document)


@pytest.fixture
def client() -> InMemoryPublishClient:
    return InMemoryPublishClient()


@pytest.fixture
def publisher(
    client: InMemoryPublishClient, settings: PublisherSettings
) -> EventPublisher:
    return EventPublisher(client=client, settings=settings)


class SequenceIdGenerator:
    """Deterministic ids: evt-1, evt-2, ..."""

    def __init__(self, prefix: str = "evt") -> None:
        self._counter = itertools.count(1)
        self._prefix = prefix

    def next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class FixedClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sequence_ids() -> SequenceIdGenerator:
    return SequenceIdGenerator()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
