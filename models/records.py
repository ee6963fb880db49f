"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Reading:
    """A single timestamped value for a topic, as returned by the telemetry API."""

    timestamp: datetime
    topic_id: int
    value: str


@dataclass(frozen=True, slots=True)
class Topic:
    """A named telemetry channel."""

    topic_id: int
    topic_name: str
