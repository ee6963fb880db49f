"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import BoundsResponse, SamplesResponse, TopicResponse
from models.errors import (
    DashboardError,
    FetchError,
    InvalidGranularity,
    InvalidRange,
    InvalidReading,
    UnknownTopic,
)
from services.dashboard import DashboardContext, DashboardService, build_default_dashboard
from services.query import QueryParameters
from services.timestamps import parse_timestamp
from settings import get_settings

router = APIRouter()

_ERROR_STATUS = (
    (InvalidGranularity, status.HTTP_400_BAD_REQUEST),
    (InvalidRange, status.HTTP_400_BAD_REQUEST),
    (UnknownTopic, status.HTTP_404_NOT_FOUND),
    (InvalidReading, status.HTTP_502_BAD_GATEWAY),
    (FetchError, status.HTTP_502_BAD_GATEWAY),
)


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


def status_for(exc: DashboardError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def parse_selection(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an optional timestamp supplied by the user."""
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value)
    except InvalidReading as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} timestamp: {value!r}",
        ) from exc


def resolve_query(
    dashboard: DashboardService,
    topic_id: Optional[int],
    start: Optional[str],
    end: Optional[str],
    granularity: Optional[str],
) -> Tuple[DashboardContext, QueryParameters]:
    """Resolve form selections, loading the bounds only for a missing start or end."""
    start_at = parse_selection(start, "start")
    end_at = parse_selection(end, "end")
    context = dashboard.load_context(include_bounds=start_at is None or end_at is None)
    params = context.default_query(
        granularity or get_settings().default_granularity,
        topic_id=topic_id,
        start=start_at,
        end=end_at,
    )
    return context, params


@router.get(
    "/api/topics",
    response_model=List[TopicResponse],
    summary="List telemetry topics available for charting.",
)
def list_topics(
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[TopicResponse]:
    try:
        topics = dashboard.gateway.list_topics()
    except DashboardError as exc:
        raise HTTPException(status_code=status_for(exc), detail=exc.message) from exc
    return [TopicResponse.from_topic(topic) for topic in topics]


@router.get(
    "/api/bounds",
    response_model=BoundsResponse,
    summary="Earliest and latest reading timestamps.",
)
def get_bounds(
    dashboard: DashboardService = Depends(get_dashboard),
) -> BoundsResponse:
    try:
        earliest = dashboard.gateway.earliest_timestamp()
        latest = dashboard.gateway.latest_timestamp()
    except DashboardError as exc:
        raise HTTPException(status_code=status_for(exc), detail=exc.message) from exc
    return BoundsResponse(earliest=earliest, latest=latest)


@router.get(
    "/api/samples",
    response_model=SamplesResponse,
    summary="Fetch readings for a topic and sample them at a granularity.",
)
def get_samples(
    topic_id: Optional[int] = Query(None, description="Defaults to the first listed topic."),
    start: Optional[str] = Query(None, description="Defaults to the earliest reading."),
    end: Optional[str] = Query(None, description="Defaults to the latest reading."),
    granularity: Optional[str] = Query(
        None, description="year, month, date, hour, minute, second or millisecond"
    ),
    dashboard: DashboardService = Depends(get_dashboard),
) -> SamplesResponse:
    try:
        context, params = resolve_query(dashboard, topic_id, start, end, granularity)
        chart = dashboard.chart(params, context)
    except DashboardError as exc:
        raise HTTPException(status_code=status_for(exc), detail=exc.message) from exc
    return SamplesResponse.from_chart(chart)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard."}
