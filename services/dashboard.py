"""Orchestration of a chart submission: validate, fetch, then sample."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Tuple

from models.records import Reading, Topic
from services.granularity import Granularity
from services.query import QueryParameters, validate_query
from services.sampler import Sampler
from services.telemetry_gateway import TelemetryGateway
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardContext:
    """Topics and timestamp bounds used to fill unset chart selections."""

    topics: Tuple[Topic, ...] = ()
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None

    def find_topic(self, topic_id: int) -> Optional[Topic]:
        for topic in self.topics:
            if topic.topic_id == topic_id:
                return topic
        return None

    def default_topic_id(self) -> Optional[int]:
        return self.topics[0].topic_id if self.topics else None

    def default_query(
        self,
        granularity: Granularity | str,
        topic_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> QueryParameters:
        """Fill unset selections the way the dashboard form is first populated.

        Missing bounds fall back to the current time.
        """
        now = datetime.now(timezone.utc)
        selected = topic_id if topic_id is not None else self.default_topic_id()
        return QueryParameters(
            topic_id=selected if selected is not None else 0,
            start=start or self.earliest or now,
            end=end or self.latest or now,
            granularity=Granularity.parse(granularity),
        )


@dataclass(frozen=True)
class ChartData:
    """Sampled readings ready to be handed to a renderer."""

    query: QueryParameters
    topic: Optional[Topic] = None
    raw_count: int = 0
    samples: Tuple[Reading, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        if self.topic is not None:
            return self.topic.topic_name
        return f"Topic {self.query.topic_id}"


class DashboardService:
    """Coordinates the telemetry gateway and the sampler."""

    def __init__(self, gateway: TelemetryGateway, sampler: Sampler) -> None:
        self.gateway = gateway
        self.sampler = sampler

    def load_context(self, include_bounds: bool = True) -> DashboardContext:
        """Fetch topics and, unless told otherwise, the timestamp bounds."""
        topics = tuple(self.gateway.list_topics())
        logger.debug("Loaded %d topics", len(topics))
        if not include_bounds:
            return DashboardContext(topics=topics)
        earliest = self.gateway.earliest_timestamp()
        latest = self.gateway.latest_timestamp()
        return DashboardContext(topics=topics, earliest=earliest, latest=latest)

    def chart(
        self,
        params: QueryParameters,
        context: Optional[DashboardContext] = None,
    ) -> ChartData:
        """Validate ``params``, fetch its readings and sample them.

        The topic membership check only runs when a context is supplied.
        """
        topics = context.topics if context is not None else None
        validate_query(params, topics)

        readings = self.gateway.fetch_readings(params)
        samples = self.sampler.sample(readings, params.granularity)
        logger.info(
            "Sampled readings",
            extra={
                "topic_id": params.topic_id,
                "granularity": params.granularity.value,
                "raw_count": len(readings),
                "sample_count": len(samples),
            },
        )
        return ChartData(
            query=params,
            topic=context.find_topic(params.topic_id) if context is not None else None,
            raw_count=len(readings),
            samples=tuple(samples),
        )

    def close(self) -> None:
        """Release the gateway's HTTP connections."""
        self.gateway.close()


@lru_cache
def build_default_dashboard(base_url: Optional[str] = None) -> DashboardService:
    """Factory that wires the dashboard with the configured telemetry API."""
    settings = get_settings()
    gateway = TelemetryGateway(
        base_url=base_url or settings.api_base_url,
        timeout=settings.api_timeout,
    )
    return DashboardService(gateway=gateway, sampler=Sampler())
