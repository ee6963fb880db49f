"""Bucketing rules for each sampling granularity.

Two timestamps share a bucket at a level when every calendar field at that
level's resolution and coarser is equal. Fields are read from the timestamp
normalized to UTC, so bucket membership never depends on the local timezone.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Tuple

from models.errors import InvalidGranularity, InvalidReading


class Granularity(str, Enum):
    """Levels at which readings can be sampled, coarsest first."""

    year = "year"
    month = "month"
    date = "date"
    hour = "hour"
    minute = "minute"
    second = "second"
    millisecond = "millisecond"

    @classmethod
    def parse(cls, value: Any) -> "Granularity":
        """Resolve a member or a case-insensitive level name."""
        if isinstance(value, cls):
            return value
        candidate = value.strip().lower() if isinstance(value, str) else None
        try:
            return cls(candidate)
        except ValueError as exc:
            raise InvalidGranularity(
                f"Invalid granularity {value!r}. Valid options are: {', '.join(GRANULARITY_NAMES)}",
                {"granularity": value},
            ) from exc


GRANULARITY_NAMES: Tuple[str, ...] = tuple(level.value for level in Granularity)

DEFAULT_GRANULARITY = Granularity.hour

_BUCKET_FIELDS: Dict[Granularity, Tuple[str, ...]] = {
    Granularity.year: ("year",),
    Granularity.month: ("year", "month"),
    Granularity.date: ("year", "month", "day"),
    Granularity.hour: ("year", "month", "day", "hour"),
    Granularity.minute: ("year", "month", "day", "hour", "minute"),
    Granularity.second: ("year", "month", "day", "hour", "minute", "second"),
    Granularity.millisecond: (
        "year",
        "month",
        "day",
        "hour",
        "minute",
        "second",
        "millisecond",
    ),
}


def _as_utc(timestamp: Any) -> datetime:
    if not isinstance(timestamp, datetime) or timestamp.tzinfo is None:
        raise InvalidReading(
            f"Timestamp {timestamp!r} is not a timezone-aware datetime.",
            {"timestamp": repr(timestamp)},
        )
    return timestamp.astimezone(timezone.utc)


def _field(moment: datetime, name: str) -> int:
    if name == "millisecond":
        return moment.microsecond // 1000
    return getattr(moment, name)


def bucket_key(timestamp: datetime, granularity: Granularity | str) -> Tuple[int, ...]:
    """Return the calendar fields identifying the bucket ``timestamp`` falls in."""
    level = Granularity.parse(granularity)
    moment = _as_utc(timestamp)
    return tuple(_field(moment, name) for name in _BUCKET_FIELDS[level])


def same_bucket(first: datetime, second: datetime, granularity: Granularity | str) -> bool:
    """Whether two timestamps agree on every field at ``granularity`` and coarser."""
    level = Granularity.parse(granularity)
    return bucket_key(first, level) == bucket_key(second, level)
