"""Tests for client-config translation and KafkaConnectionManager."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bulk_transfer_events.exceptions import ConfigurationError
from bulk_transfer_events.kafka.connection import (
    KafkaConnectionManager,
    translate_producer_config,
)
from bulk_transfer_events.topics import ClientConfig

ADMIN_PATH = "bulk_transfer_events.kafka.connection.AIOKafkaAdminClient"


def test_translate_full_producer_config() -> None:
    config = ClientConfig(
        rdkafka_conf={
            "metadata.broker.list": "kafka-1:9092,kafka-2:9092",
            "client.id": "bulk-fulfil-producer",
            "compression.codec": "LZ4",
            "queue.buffering.max.ms": "5",
            "batch.size": 16384,
            "enable.idempotence": "true",
            "security.protocol": "sasl_ssl",
            "sasl.mechanisms": "PLAIN",
            "sasl.username": "user",
            "sasl.password": "secret",
            "socket.keepalive.enable": True,
            "event_cb": True,
        },
        topic_conf={"request.required.acks": -1},
    )
    assert translate_producer_config(config) == {
        "bootstrap_servers": "kafka-1:9092,kafka-2:9092",
        "client_id": "bulk-fulfil-producer",
        "compression_type": "lz4",
        "linger_ms": 5,
        "max_batch_size": 16384,
        "enable_idempotence": True,
        "security_protocol": "SASL_SSL",
        "sasl_mechanism": "PLAIN",
        "sasl_plain_username": "user",
        "sasl_plain_password": "secret",
        "acks": "all",
    }


@pytest.mark.parametrize(
    ("acks", "expected"), [("all", "all"), ("-1", "all"), (0, 0), ("1", 1)]
)
def test_translate_acks(acks: object, expected: object) -> None:
    config = ClientConfig(
        rdkafka_conf={"bootstrap.servers": "localhost:9092"},
        topic_conf={"request.required.acks": acks},
    )
    assert translate_producer_config(config)["acks"] == expected


def test_translate_compression_none() -> None:
    config = ClientConfig(
        rdkafka_conf={"bootstrap.servers": "b:9092", "compression.codec": "none"}
    )
    assert translate_producer_config(config)["compression_type"] is None


def test_translate_rejects_invalid_values() -> None:
    with pytest.raises(ConfigurationError, match="acks"):
        translate_producer_config(
            ClientConfig(
                rdkafka_conf={"bootstrap.servers": "b:9092"},
                topic_conf={"acks": "some"},
            )
        )
    with pytest.raises(ConfigurationError, match="linger.ms"):
        translate_producer_config(
            ClientConfig(rdkafka_conf={"bootstrap.servers": "b:9092", "linger.ms": "x"})
        )


def test_translate_requires_brokers() -> None:
    with pytest.raises(ConfigurationError):
        translate_producer_config(ClientConfig(rdkafka_conf={"client.id": "c"}))


def test_connection_manager_exposes_config() -> None:
    conn = KafkaConnectionManager(
        ClientConfig(rdkafka_conf={"metadata.broker.list": "localhost:9092"})
    )
    assert conn.bootstrap_servers == "localhost:9092"
    cfg = conn.producer_config()
    cfg["client_id"] = "mutated"
    assert "client_id" not in conn.producer_config()


@pytest.mark.asyncio
async def test_health_check_reachable() -> None:
    admin = MagicMock()
    admin.start = AsyncMock()
    admin.list_topics = AsyncMock(return_value=["topic-bulk-prepare"])
    admin.close = AsyncMock()
    conn = KafkaConnectionManager(
        ClientConfig(
            rdkafka_conf={"metadata.broker.list": "localhost:9092", "linger.ms": 5}
        )
    )
    with patch(ADMIN_PATH, return_value=admin) as factory:
        assert await conn.health_check() is True
    factory.assert_called_once_with(bootstrap_servers="localhost:9092")
    admin.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_health_check_unreachable() -> None:
    admin = MagicMock()
    admin.start = AsyncMock(side_effect=OSError("connection refused"))
    conn = KafkaConnectionManager(
        ClientConfig(rdkafka_conf={"metadata.broker.list": "localhost:9092"})
    )
    with patch(ADMIN_PATH, return_value=admin):
        assert await conn.health_check() is False
