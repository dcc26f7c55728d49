"""EventEnvelope: the immutable message unit published to the broker.

The wire shape is shared with existing consumers and must stay field-for-field
compatible::

    {
      "id": ..., "to": ..., "from": ..., "type": "application/json",
      "content": {"uriParams": {"id": ...}, "headers": {...}, "payload": {...}},
      "metadata": {"event": {"id": ..., "type": ..., "action": ...,
                             "createdAt": ..., "state": {"status": ..., "code": ...}}}
    }
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    field_validator,
    model_serializer,
)

CONTENT_TYPE_JSON = "application/json"
STATUS_SUCCESS = "success"
CODE_SUCCESS = 0


def format_timestamp(value: datetime) -> str:
    """Render *value* as ISO 8601 UTC with millisecond precision and ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def freeze(value: Any) -> Any:
    """Return a read-only copy of nested mappings and sequences."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`; returns plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class EventState(_WireModel):
    """Outcome recorded at construction time."""

    status: str = STATUS_SUCCESS
    code: int = CODE_SUCCESS


class EventMetadata(_WireModel):
    """Per-event metadata with its own identifier space."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str
    action: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
    state: EventState = Field(default_factory=EventState)

    @field_serializer("created_at", when_used="json")
    def _serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class EnvelopeMetadata(_WireModel):
    event: EventMetadata


class UriParams(_WireModel):
    """Identifies the resource addressed by the envelope."""

    id: str


class EnvelopeContent(_WireModel):
    """Transport headers, raw payload and optional URI parameters.

    Headers and payload are stored as read-only views; nested lists become
    tuples. Both are rendered back as plain dicts and lists on dump.
    """

    uri_params: UriParams | None = Field(default=None, alias="uriParams")
    headers: Mapping[str, Any] = Field(default_factory=_empty)
    payload: Mapping[str, Any] = Field(default_factory=_empty)

    @field_validator("headers", "payload", mode="after")
    @classmethod
    def _freeze_nested(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    @field_serializer("headers", "payload")
    def _thaw_nested(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return thaw(value)

    @model_serializer(mode="wrap")
    def _omit_absent_uri_params(
        self, handler: SerializerFunctionWrapHandler
    ) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if self.uri_params is None:
            data.pop("uriParams", None)
            data.pop("uri_params", None)
        return data


class EventEnvelope(_WireModel):
    """Immutable envelope handed to the publish client.

    ``id`` is the caller's correlation identifier; ``metadata.event.id`` is a
    separately generated event-instance identifier.
    """

    id: str = Field(..., min_length=1)
    to: str
    from_: str = Field(..., alias="from")
    content_type: str = Field(default=CONTENT_TYPE_JSON, alias="type")
    content: EnvelopeContent
    metadata: EnvelopeMetadata

    @property
    def event(self) -> EventMetadata:
        return self.metadata.event

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible dict consumers expect."""
        return self.model_dump(mode="json", by_alias=True)
