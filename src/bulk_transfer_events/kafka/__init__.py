"""Kafka publish client (aiokafka)."""

from __future__ import annotations

from .client import KafkaPublishClient
from .connection import KafkaConnectionManager, translate_producer_config

__all__ = [
    "KafkaConnectionManager",
    "KafkaPublishClient",
    "translate_producer_config",
]
