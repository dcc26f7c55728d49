"""Outbound event publication for bulk transfers: envelopes, topic routing, Kafka."""

from __future__ import annotations

from .config import GENERAL_TOPIC_TEMPLATE, PublisherSettings, load_settings
from .envelope import (
    EnvelopeContent,
    EnvelopeMetadata,
    EventEnvelope,
    EventMetadata,
    EventState,
    UriParams,
)
from .exceptions import (
    BulkTransferEventsError,
    ConfigurationError,
    EnvelopeSerializationError,
    PublishError,
    ValidationError,
)
from .memory import InMemoryPublishClient
from .ports import IIDGenerator, IPublishClient, UUID4Generator
from .publisher import (
    BULK_FULFIL,
    BULK_PREPARE,
    EventPublisher,
    OperationDescriptor,
)
from .serialization import EnvelopeSerializer
from .topics import (
    ClientConfig,
    Domain,
    Operation,
    Role,
    TopicConfig,
    resolve_client_config,
    resolve_topic,
)

__all__ = [
    "BULK_FULFIL",
    "BULK_PREPARE",
    "GENERAL_TOPIC_TEMPLATE",
    "BulkTransferEventsError",
    "ClientConfig",
    "ConfigurationError",
    "Domain",
    "EnvelopeContent",
    "EnvelopeMetadata",
    "EnvelopeSerializationError",
    "EnvelopeSerializer",
    "EventEnvelope",
    "EventMetadata",
    "EventPublisher",
    "EventState",
    "IIDGenerator",
    "IPublishClient",
    "InMemoryPublishClient",
    "Operation",
    "OperationDescriptor",
    "PublishError",
    "PublisherSettings",
    "Role",
    "TopicConfig",
    "UUID4Generator",
    "UriParams",
    "ValidationError",
    "load_settings",
    "resolve_client_config",
    "resolve_topic",
]
