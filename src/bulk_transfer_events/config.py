"""Process-wide publisher settings.

Settings follow the layout of the service configuration document::

    {
      "KAFKA": {
        "TOPIC_TEMPLATES": {
          "GENERAL_TOPIC_TEMPLATE": {"TEMPLATE": "topic-{{functionality}}-{{action}}"}
        },
        "PRODUCER": {
          "BULK": {
            "PREPARE": {"config": {"options": {...}, "rdkafkaConf": {...},
                                   "topicConf": {...}}},
            "FULFIL": {"config": {...}}
          }
        }
      }
    }

They are read once and treated as read-only afterwards.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError

GENERAL_TOPIC_TEMPLATE = "topic-{{functionality}}-{{action}}"


@dataclass(frozen=True)
class PublisherSettings:
    """Configuration for topic and client resolution.

    Attributes:
        kafka: Client configuration tree keyed ``ROLE -> DOMAIN -> OPERATION``.
        topic_template: Template used to build general topic names.
    """

    kafka: dict[str, Any] = field(default_factory=dict)
    topic_template: str = GENERAL_TOPIC_TEMPLATE

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> PublisherSettings:
        """Build settings from a parsed configuration document."""
        kafka = data.get("KAFKA", {})
        if not isinstance(kafka, dict):
            raise ConfigurationError("KAFKA configuration must be a mapping")
        node: Any = kafka
        path = "KAFKA"
        for part in ("TOPIC_TEMPLATES", "GENERAL_TOPIC_TEMPLATE"):
            node = node.get(part, {})
            path = f"{path}.{part}"
            if not isinstance(node, dict):
                raise ConfigurationError(f"{path} configuration must be a mapping")
        template = node.get("TEMPLATE", GENERAL_TOPIC_TEMPLATE)
        if not isinstance(template, str) or not template:
            raise ConfigurationError(f"{path}.TEMPLATE must be a non-empty string")
        tree = {k: v for k, v in kafka.items() if k != "TOPIC_TEMPLATES"}
        return cls(kafka=tree, topic_template=template)


def load_settings(path: str | Path) -> PublisherSettings:
    """Load settings from a JSON configuration file."""
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Unable to read configuration file {config_path}: {e}", cause=e
        ) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file {config_path}: {e}", cause=e
        ) from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a JSON object"
        )
    return PublisherSettings.from_mapping(data)
