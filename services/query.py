"""Query descriptors and their validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from models.errors import InvalidRange, UnknownTopic
from models.records import Topic
from services.granularity import DEFAULT_GRANULARITY, Granularity


@dataclass(frozen=True)
class QueryParameters:
    """A single chart submission: which topic, over which window, at which granularity."""

    topic_id: int
    start: datetime
    end: datetime
    granularity: Granularity = DEFAULT_GRANULARITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        object.__setattr__(self, "granularity", Granularity.parse(self.granularity))


def as_utc(value: datetime) -> datetime:
    """Normalize to UTC, reading naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_query(params: QueryParameters, topics: Optional[Iterable[Topic]] = None) -> None:
    """Reject a query before anything is fetched for it.

    ``topic_id`` must reference a previously fetched topic. The membership
    check only runs when the caller passes the topics it loaded.
    """
    if params.start > params.end:
        raise InvalidRange(
            f"Start {params.start.isoformat()} is after end {params.end.isoformat()}.",
            {"start": params.start.isoformat(), "end": params.end.isoformat()},
        )
    if topics is not None:
        known = {topic.topic_id for topic in topics}
        if params.topic_id not in known:
            raise UnknownTopic(
                f"Topic {params.topic_id} is not a known topic.",
                {"topic_id": params.topic_id},
            )


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    moment = as_utc(value)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def build_query_params(params: QueryParameters) -> Dict[str, str]:
    """Query string for the upstream ``/_/data`` endpoint."""
    return {
        "topic_id": str(params.topic_id),
        "start_date_time": format_timestamp(params.start),
        "end_date_time": format_timestamp(params.end),
    }
