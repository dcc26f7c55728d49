"""Kafka client configuration translation and health check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiokafka.admin import AIOKafkaAdminClient

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..topics import ClientConfig

logger = logging.getLogger("bulk_transfer_events.kafka")


def _int(value: Any) -> int:
    return int(value)


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _upper(value: Any) -> str:
    return str(value).upper()


def _compression(value: Any) -> str | None:
    codec = str(value).lower()
    return None if codec in ("", "none") else codec


# librdkafka key -> (aiokafka kwarg, converter)
_RDKAFKA_KEYS: dict[str, tuple[str, Any]] = {
    "metadata.broker.list": ("bootstrap_servers", str),
    "bootstrap.servers": ("bootstrap_servers", str),
    "client.id": ("client_id", str),
    "compression.codec": ("compression_type", _compression),
    "compression.type": ("compression_type", _compression),
    "linger.ms": ("linger_ms", _int),
    "queue.buffering.max.ms": ("linger_ms", _int),
    "batch.size": ("max_batch_size", _int),
    "message.max.bytes": ("max_request_size", _int),
    "retry.backoff.ms": ("retry_backoff_ms", _int),
    "request.timeout.ms": ("request_timeout_ms", _int),
    "metadata.max.age.ms": ("metadata_max_age_ms", _int),
    "enable.idempotence": ("enable_idempotence", _bool),
    "security.protocol": ("security_protocol", _upper),
    "sasl.mechanisms": ("sasl_mechanism", str),
    "sasl.mechanism": ("sasl_mechanism", str),
    "sasl.username": ("sasl_plain_username", str),
    "sasl.password": ("sasl_plain_password", str),
}


def _acks(value: Any) -> int | str:
    token = str(value).strip().lower()
    if token in ("all", "-1"):
        return "all"
    if token in ("0", "1"):
        return int(token)
    raise ConfigurationError(f"Unsupported acks setting: {value!r}")


def translate_producer_config(config: ClientConfig) -> dict[str, Any]:
    """Map librdkafka-style client config onto AIOKafkaProducer kwargs.

    Keys without an aiokafka counterpart (callbacks, socket tuning) are skipped.
    """
    kwargs: dict[str, Any] = {}
    merged = {**config.rdkafka_conf, **config.topic_conf}
    for key, value in merged.items():
        if key in ("request.required.acks", "acks"):
            kwargs["acks"] = _acks(value)
            continue
        mapping = _RDKAFKA_KEYS.get(key)
        if mapping is None:
            logger.debug("Ignoring unsupported producer setting %s", key)
            continue
        name, convert = mapping
        try:
            kwargs[name] = convert(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid value for producer setting {key}: {value!r}", cause=e
            ) from e
    if "bootstrap_servers" not in kwargs:
        raise ConfigurationError(
            "Producer config requires metadata.broker.list or bootstrap.servers"
        )
    return kwargs


class KafkaConnectionManager:
    """Holds the translated producer config and runs broker health checks.

    Does not hold a long-lived producer; the publish client creates those.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = translate_producer_config(config)

    @property
    def bootstrap_servers(self) -> str:
        return str(self._config["bootstrap_servers"])

    def producer_config(self) -> dict[str, Any]:
        """Config dict for AIOKafkaProducer."""
        return dict(self._config)

    def cache_key(self) -> tuple[tuple[str, Any], ...]:
        """Hashable form of the producer config, sorted by setting name."""
        return tuple(sorted(self._config.items()))

    async def health_check(self) -> bool:
        """Return True if the cluster is reachable."""
        admin_keys = (
            "bootstrap_servers",
            "client_id",
            "security_protocol",
            "sasl_mechanism",
            "sasl_plain_username",
            "sasl_plain_password",
            "request_timeout_ms",
        )
        try:
            admin = AIOKafkaAdminClient(
                **{k: v for k, v in self._config.items() if k in admin_keys}
            )
            await admin.start()
            try:
                await admin.list_topics()
                return True
            finally:
                await admin.close()
        except Exception:  # noqa: BLE001
            logger.warning(
                "Kafka health check failed for %s",
                self.bootstrap_servers,
                exc_info=True,
            )
            return False
