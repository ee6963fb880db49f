"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Reading, Topic
from services.dashboard import ChartData
from services.granularity import Granularity


class TopicResponse(BaseModel):
    """A telemetry topic offered in the dashboard."""

    topic_id: int
    topic_name: str

    @classmethod
    def from_topic(cls, topic: Topic) -> "TopicResponse":
        return cls(topic_id=topic.topic_id, topic_name=topic.topic_name)


class BoundsResponse(BaseModel):
    """Earliest and latest timestamps known to the telemetry API."""

    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None


class ReadingResponse(BaseModel):
    """A single sampled reading."""

    ts: datetime
    topic_id: int
    value_string: str

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        return cls(ts=reading.timestamp, topic_id=reading.topic_id, value_string=reading.value)


class SamplesResponse(BaseModel):
    """Sampled readings for one chart submission."""

    topic_id: int
    label: str
    start: datetime
    end: datetime
    granularity: Granularity
    raw_count: int = Field(..., ge=0, description="Number of readings returned upstream.")
    sample_count: int = Field(..., ge=0)
    data: List[ReadingResponse] = Field(default_factory=list)

    @classmethod
    def from_chart(cls, chart: ChartData) -> "SamplesResponse":
        return cls(
            topic_id=chart.query.topic_id,
            label=chart.label,
            start=chart.query.start,
            end=chart.query.end,
            granularity=chart.query.granularity,
            raw_count=chart.raw_count,
            sample_count=len(chart.samples),
            data=[ReadingResponse.from_reading(reading) for reading in chart.samples],
        )
