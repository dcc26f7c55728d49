"""Exceptions for bulk-transfer-events."""

from __future__ import annotations


class BulkTransferEventsError(Exception):
    """Root exception for the bulk-transfer-events package."""


class PublishError(BulkTransferEventsError):
    """Raised when an envelope could not be handed off to the publish client.

    Carries the operation and correlation id of the failing call so that
    callers can trace it; the underlying failure is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        correlation_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.correlation_id = correlation_id
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__


class ValidationError(PublishError):
    """Raised when the inbound message or headers are malformed.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(
        self,
        errors: dict[str, list[str]] | str | None = None,
        *,
        operation: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(
            str(self.errors), operation=operation, correlation_id=correlation_id
        )


class ConfigurationError(PublishError):
    """Raised when topic or client configuration cannot be resolved."""


class EnvelopeSerializationError(PublishError):
    """Raised when an envelope cannot be encoded for the wire."""
