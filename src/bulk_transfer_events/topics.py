"""Topic and client-configuration resolution.

Pure functions: no I/O and no caching. Topic names are built from lowercase
tokens (``topic-bulk-prepare``); configuration lookups use uppercase tokens
(``PRODUCER -> BULK -> PREPARE``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from .config import GENERAL_TOPIC_TEMPLATE, PublisherSettings
from .exceptions import ConfigurationError

logger = logging.getLogger("bulk_transfer_events.topics")

_E = TypeVar("_E", bound=Enum)


class Role(Enum):
    PRODUCER = "PRODUCER"
    CONSUMER = "CONSUMER"


class Domain(Enum):
    BULK = "bulk"


class Operation(Enum):
    PREPARE = "prepare"
    FULFIL = "fulfil"


@dataclass(frozen=True)
class TopicConfig:
    """Routing for one publish: topic name plus optional key/partition."""

    topic_name: str
    key: str | None = None
    partition: int | None = None
    opaque_key: str | None = None


@dataclass(frozen=True)
class ClientConfig:
    """Client configuration sections for one (role, domain, operation).

    Attributes:
        options: Library-level options (e.g. ``messageCharset``).
        rdkafka_conf: Broker/client settings in librdkafka key style.
        topic_conf: Per-topic settings (e.g. ``request.required.acks``).
    """

    options: dict[str, Any] = field(default_factory=dict)
    rdkafka_conf: dict[str, Any] = field(default_factory=dict)
    topic_conf: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ClientConfig:
        return cls(
            options=dict(data.get("options") or {}),
            rdkafka_conf=dict(data.get("rdkafkaConf") or {}),
            topic_conf=dict(data.get("topicConf") or {}),
        )


def coerce_token(enum_type: type[_E], value: _E | str) -> _E:
    """Case-insensitively map *value* onto a member of *enum_type*."""
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        token = value.strip()
        for member in enum_type:
            if member.value.lower() == token.lower():
                return member
    raise ConfigurationError(
        f"Invalid {enum_type.__name__.lower()} token: {value!r}"
    )


def validate_topic_name(name: str) -> bool:
    """Topic names: 1-249 chars of ASCII letters, digits, ``.``, ``_``, ``-``."""
    if not name or len(name) > 249:
        return False
    return all((c.isascii() and c.isalnum()) or c in ("-", "_", ".") for c in name)


def render_topic_template(template: str, functionality: str, action: str) -> str:
    """Substitute ``{{functionality}}`` and ``{{action}}`` in *template*."""
    name = template.replace("{{functionality}}", functionality).replace(
        "{{action}}", action
    )
    if "{{" in name or "}}" in name:
        raise ConfigurationError(
            f"Unresolved placeholder in topic template {template!r}"
        )
    return name


def resolve_topic(
    domain: Domain | str,
    operation: Operation | str,
    template: str | None = None,
    *,
    key: str | None = None,
    partition: int | None = None,
    opaque_key: str | None = None,
) -> TopicConfig:
    """Return the general topic configuration for *domain* / *operation*."""
    dom = coerce_token(Domain, domain)
    op = coerce_token(Operation, operation)
    name = render_topic_template(
        template or GENERAL_TOPIC_TEMPLATE, dom.value.lower(), op.value.lower()
    )
    if not validate_topic_name(name):
        raise ConfigurationError(f"Invalid topic name: {name!r}")
    return TopicConfig(
        topic_name=name, key=key, partition=partition, opaque_key=opaque_key
    )


def resolve_client_config(
    role: Role | str,
    domain: Domain | str,
    operation: Operation | str,
    settings: PublisherSettings,
) -> ClientConfig:
    """Look up ``settings.kafka[ROLE][DOMAIN][OPERATION]['config']``."""
    path = (
        coerce_token(Role, role).value.upper(),
        coerce_token(Domain, domain).value.upper(),
        coerce_token(Operation, operation).value.upper(),
    )
    node: Any = settings.kafka
    for part in path:
        if not isinstance(node, dict) or part not in node:
            raise ConfigurationError(
                f"Kafka configuration missing {'.'.join(path)} (at {part})"
            )
        node = node[part]
    config = node.get("config") if isinstance(node, dict) else None
    if not isinstance(config, dict):
        raise ConfigurationError(f"Kafka configuration missing {'.'.join(path)}.config")
    logger.debug("Resolved client config for %s", ".".join(path))
    return ClientConfig.from_mapping(config)
