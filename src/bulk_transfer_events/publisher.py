"""EventPublisher: builds bulk-transfer envelopes and hands them to the broker.

Prepare and fulfil differ only in where the routing identifiers come from and
whether a URI parameter addresses the bulk transfer. Both are fixed per
operation, so each operation is described by an ``OperationDescriptor`` and
every envelope is built by the same code path.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .config import PublisherSettings
from .envelope import (
    CONTENT_TYPE_JSON,
    EnvelopeContent,
    EnvelopeMetadata,
    EventEnvelope,
    EventMetadata,
    EventState,
    UriParams,
)
from .exceptions import ConfigurationError, PublishError, ValidationError
from .ports import IClock, IIDGenerator, IPublishClient, UTCClock, UUID4Generator
from .topics import (
    Domain,
    Operation,
    Role,
    coerce_token,
    resolve_client_config,
    resolve_topic,
)

_log = logging.getLogger("bulk_transfer_events.publisher")

HEADER_SOURCE = "fspiop-source"
HEADER_DESTINATION = "fspiop-destination"


def get_header(headers: Mapping[str, Any], name: str) -> Any:
    """Case-insensitive header lookup; returns None when absent."""
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def route_from_payload(
    headers: Mapping[str, Any], message: Mapping[str, Any]
) -> tuple[str, str]:
    """(from, to) = (payerFsp, payeeFsp)."""
    return message["payerFsp"], message["payeeFsp"]


def route_from_headers(
    headers: Mapping[str, Any], message: Mapping[str, Any]
) -> tuple[str, str]:
    """(from, to) = (fspiop-source, fspiop-destination)."""
    return get_header(headers, HEADER_SOURCE), get_header(headers, HEADER_DESTINATION)


def bulk_transfer_uri_params(message: Mapping[str, Any]) -> UriParams:
    return UriParams(id=message["bulkTransferId"])


@dataclass(frozen=True)
class OperationDescriptor:
    """Envelope policy for one operation.

    Attributes:
        operation: Operation token used for topic and config resolution.
        event_type: ``metadata.event.type``.
        event_action: ``metadata.event.action``.
        routing: Returns ``(from, to)`` given ``(headers, message)``.
        required_fields: Payload fields that must be non-empty strings.
        required_headers: Headers that must be non-empty strings.
        uri_params: Optional extractor for ``content.uriParams``.
    """

    operation: Operation
    event_type: str
    event_action: str
    routing: Callable[[Mapping[str, Any], Mapping[str, Any]], tuple[str, str]]
    required_fields: tuple[str, ...] = ()
    required_headers: tuple[str, ...] = ()
    uri_params: Callable[[Mapping[str, Any]], UriParams] | None = None


BULK_PREPARE = OperationDescriptor(
    operation=Operation.PREPARE,
    event_type="bulk-prepare",
    event_action="bulk-prepare",
    routing=route_from_payload,
    required_fields=("payerFsp", "payeeFsp"),
)

BULK_FULFIL = OperationDescriptor(
    operation=Operation.FULFIL,
    event_type="bulk-fulfil",
    event_action="bulk-commit",
    routing=route_from_headers,
    required_fields=("bulkTransferId",),
    required_headers=(HEADER_SOURCE, HEADER_DESTINATION),
    uri_params=bulk_transfer_uri_params,
)

DEFAULT_DESCRIPTORS: dict[Operation, OperationDescriptor] = {
    Operation.PREPARE: BULK_PREPARE,
    Operation.FULFIL: BULK_FULFIL,
}


def _is_present(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class EventPublisher:
    """Translates one inbound bulk-transfer operation into one outbound envelope.

    Collaborators are injected so tests can substitute them::

        publisher = EventPublisher(
            client=KafkaPublishClient(),
            settings=load_settings("config/default.json"),
        )
        await publisher.publish_prepare(message_id, headers, payload)

    Each call is independent; the only suspension point is the publish
    client's ``send``. Failures are logged once and raised to the caller.
    """

    def __init__(
        self,
        client: IPublishClient,
        settings: PublisherSettings | None = None,
        *,
        id_generator: IIDGenerator | None = None,
        clock: IClock | None = None,
        logger: logging.Logger | None = None,
        descriptors: Mapping[Operation, OperationDescriptor] | None = None,
        domain: Domain = Domain.BULK,
    ) -> None:
        self._client = client
        self._settings = settings or PublisherSettings()
        self._ids = id_generator or UUID4Generator()
        self._clock = clock or UTCClock()
        self._log = logger or _log
        self._descriptors = dict(descriptors or DEFAULT_DESCRIPTORS)
        self._domain = domain

    def descriptor_for(self, operation: Operation | str) -> OperationDescriptor:
        op = coerce_token(Operation, operation)
        descriptor = self._descriptors.get(op)
        if descriptor is None:
            raise ConfigurationError(
                f"No envelope descriptor for operation {op.value!r}"
            )
        return descriptor

    # ── Envelope construction ────────────────────────────────────────

    def _validate(
        self,
        descriptor: OperationDescriptor,
        correlation_id: Any,
        headers: Any,
        message: Any,
    ) -> None:
        errors: dict[str, list[str]] = {}
        if not _is_present(correlation_id):
            errors.setdefault("correlationId", []).append("must be a non-empty string")
        if not isinstance(headers, Mapping):
            errors.setdefault("headers", []).append("must be a mapping")
        if not isinstance(message, Mapping):
            errors.setdefault("message", []).append("must be a mapping")
        for name, value in (("headers", headers), ("message", message)):
            if isinstance(value, Mapping) and not all(
                isinstance(k, str) for k in value
            ):
                errors.setdefault(name, []).append("keys must be strings")
        if errors:
            raise ValidationError(
                errors,
                operation=descriptor.event_type,
                correlation_id=(
                    correlation_id if isinstance(correlation_id, str) else None
                ),
            )
        for name in descriptor.required_fields:
            if not _is_present(message.get(name)):
                errors.setdefault(name, []).append("required non-empty string field")
        for name in descriptor.required_headers:
            if not _is_present(get_header(headers, name)):
                errors.setdefault(f"headers.{name}", []).append("required header")
        if errors:
            raise ValidationError(
                errors, operation=descriptor.event_type, correlation_id=correlation_id
            )

    def _next_event_id(self, correlation_id: str) -> str:
        event_id = self._ids.next_id()
        if event_id == correlation_id:
            event_id = self._ids.next_id()
        if event_id == correlation_id:
            raise ConfigurationError(
                "Event id generator returned the correlation id twice"
            )
        return event_id

    def build_envelope(
        self,
        operation: Operation | str,
        correlation_id: str,
        headers: Mapping[str, Any] | None,
        message: Mapping[str, Any],
    ) -> EventEnvelope:
        """Validate the inputs and build a fresh envelope.

        Headers and payload are copied so later mutation by the caller cannot
        change an envelope already handed to the publish client.
        """
        descriptor = self.descriptor_for(operation)
        headers = {} if headers is None else headers
        self._validate(descriptor, correlation_id, headers, message)
        source, destination = descriptor.routing(headers, message)
        uri_params = descriptor.uri_params(message) if descriptor.uri_params else None
        return EventEnvelope(
            id=correlation_id,
            to=destination,
            from_=source,
            content_type=CONTENT_TYPE_JSON,
            content=EnvelopeContent(
                uri_params=uri_params,
                headers=copy.deepcopy(dict(headers)),
                payload=copy.deepcopy(dict(message)),
            ),
            metadata=EnvelopeMetadata(
                event=EventMetadata(
                    id=self._next_event_id(correlation_id),
                    type=descriptor.event_type,
                    action=descriptor.event_action,
                    created_at=self._clock.now(),
                    state=EventState(),
                )
            ),
        )

    # ── Publishing ───────────────────────────────────────────────────

    async def publish(
        self,
        operation: Operation | str,
        correlation_id: str,
        headers: Mapping[str, Any] | None,
        message: Mapping[str, Any],
    ) -> bool:
        """Build the envelope for *operation* and hand it to the publish client.

        Returns:
            ``True`` once the publish client accepted the envelope.

        Raises:
            ValidationError: ``message`` or ``headers`` are malformed.
            ConfigurationError: topic or client config cannot be resolved.
            PublishError: the publish client failed; the cause is chained.
        """
        label = str(getattr(operation, "value", operation))
        self._log.debug("Publishing %s (correlation_id=%s)", label, correlation_id)
        try:
            descriptor = self.descriptor_for(operation)
            label = descriptor.event_type
            envelope = self.build_envelope(
                descriptor.operation, correlation_id, headers, message
            )
            topic = resolve_topic(
                self._domain, descriptor.operation, self._settings.topic_template
            )
            config = resolve_client_config(
                Role.PRODUCER, self._domain, descriptor.operation, self._settings
            )
            if self._log.isEnabledFor(logging.DEBUG):
                self._log.debug("%s envelope: %s", label, envelope.to_wire())
                self._log.debug("%s topic config: %s", label, topic)
                self._log.debug("%s client config: %s", label, config)
            accepted = await self._client.send(envelope, topic, config)
            if not accepted:
                raise PublishError(
                    f"Publish client did not accept {label} envelope",
                    operation=label,
                    correlation_id=correlation_id,
                )
        except PublishError:
            self._log.exception(
                "%s failed (correlation_id=%s)", label, correlation_id
            )
            raise
        except Exception as e:
            self._log.exception(
                "%s failed (correlation_id=%s)", label, correlation_id
            )
            raise PublishError(
                f"Failed to publish {label} envelope: {e}",
                operation=label,
                correlation_id=correlation_id,
                cause=e,
            ) from e
        self._log.info(
            "Published %s (correlation_id=%s, event_id=%s) to %s",
            label,
            correlation_id,
            envelope.event.id,
            topic.topic_name,
        )
        return True

    async def publish_prepare(
        self,
        correlation_id: str,
        headers: Mapping[str, Any] | None,
        message: Mapping[str, Any],
    ) -> bool:
        """Publish a bulk prepare; routing comes from ``payerFsp``/``payeeFsp``."""
        return await self.publish(Operation.PREPARE, correlation_id, headers, message)

    async def publish_fulfil(
        self,
        correlation_id: str,
        headers: Mapping[str, Any] | None,
        message: Mapping[str, Any],
    ) -> bool:
        """Publish a bulk fulfil; routing comes from the FSPIOP headers."""
        return await self.publish(Operation.FULFIL, correlation_id, headers, message)
