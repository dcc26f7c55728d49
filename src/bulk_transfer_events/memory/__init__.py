"""In-memory publish client for testing."""

from __future__ import annotations

from .client import InMemoryPublishClient, SentMessage

__all__ = [
    "InMemoryPublishClient",
    "SentMessage",
]
