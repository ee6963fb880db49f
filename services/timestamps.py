"""Conversion of telemetry API entries into readings."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from models.errors import InvalidReading
from models.records import Reading

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _from_epoch_ms(value: int | float) -> datetime:
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except (OverflowError, ValueError) as exc:
        raise InvalidReading(f"Epoch timestamp {value!r} is out of range.") from exc


def parse_timestamp(value: Any) -> datetime:
    """Parse epoch milliseconds or ISO-8601 text into a UTC datetime.

    Naive values are treated as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise InvalidReading(f"Invalid timestamp {value!r}.")
    elif isinstance(value, (int, float)):
        return _from_epoch_ms(value)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise InvalidReading("Timestamp is empty.")
        if candidate.lstrip("-").isdigit():
            return _from_epoch_ms(int(candidate))
        if candidate[-1] in "Zz":
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise InvalidReading(f"Invalid timestamp format: {value!r}.") from exc
    else:
        raise InvalidReading(f"Invalid timestamp {value!r}.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_reading(entry: Any) -> Reading:
    """Build a :class:`Reading` from a ``/_/data`` entry."""
    if not isinstance(entry, Mapping):
        raise InvalidReading(f"Reading entry must be an object, got {type(entry).__name__}.")

    raw_topic = entry.get("topic_id")
    if isinstance(raw_topic, bool):
        raise InvalidReading(f"Invalid topic_id {raw_topic!r}.")
    try:
        topic_id = int(raw_topic)
    except (TypeError, ValueError) as exc:
        raise InvalidReading(f"Invalid topic_id {raw_topic!r}.") from exc

    value = entry.get("value_string", entry.get("value"))
    if value is None:
        raise InvalidReading("Reading entry is missing a value.", {"topic_id": topic_id})

    return Reading(
        timestamp=parse_timestamp(entry.get("ts")),
        topic_id=topic_id,
        value=str(value),
    )
