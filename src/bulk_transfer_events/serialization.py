"""EnvelopeSerializer: JSON encoding of EventEnvelope for the wire."""

from __future__ import annotations

import codecs
import json

from pydantic import ValidationError as PydanticValidationError

from .envelope import EventEnvelope
from .exceptions import ConfigurationError, EnvelopeSerializationError


class EnvelopeSerializer:
    """Serialize/deserialize EventEnvelope to/from UTF-8 JSON bytes."""

    def __init__(self, charset: str = "utf-8") -> None:
        try:
            codecs.lookup(charset)
        except LookupError as e:
            raise ConfigurationError(
                f"Unknown message charset {charset!r}", cause=e
            ) from e
        self._charset = charset

    @property
    def charset(self) -> str:
        return self._charset

    def serialize(self, envelope: EventEnvelope) -> bytes:
        """Encode envelope to JSON bytes using its wire aliases."""
        try:
            data = envelope.to_wire()
            return json.dumps(data, separators=(",", ":")).encode(self._charset)
        except (TypeError, ValueError) as e:
            raise EnvelopeSerializationError(
                str(e), correlation_id=envelope.id, cause=e
            ) from e

    def deserialize(self, raw: bytes) -> EventEnvelope:
        """Decode JSON bytes to EventEnvelope."""
        try:
            data = json.loads(raw.decode(self._charset))
            return EventEnvelope.model_validate(data)
        except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError) as e:
            raise EnvelopeSerializationError(str(e), cause=e) from e
