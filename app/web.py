from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import get_dashboard, parse_selection, status_for
from models.errors import DashboardError
from models.records import Reading
from services.dashboard import ChartData, DashboardContext, DashboardService
from services.granularity import GRANULARITY_NAMES
from services.query import format_timestamp
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

CHART_WIDTH = 720
CHART_HEIGHT = 240


def _fraction(value: float, low: float, high: float) -> float:
    span = high - low
    if math.isinf(span):
        return (value / 2 - low / 2) / (high / 2 - low / 2)
    return (value - low) / span


def chart_points(readings: Iterable[Reading], width: int = CHART_WIDTH, height: int = CHART_HEIGHT) -> str:
    """SVG polyline points for the numeric readings, scaled by time and value."""
    series = []
    for reading in readings:
        try:
            value = float(reading.value)
        except ValueError:
            continue
        if math.isfinite(value):
            series.append((reading.timestamp.timestamp(), value))
    if not series:
        return ""

    first, last = series[0][0], series[-1][0]
    low = min(value for _, value in series)
    high = max(value for _, value in series)
    points: List[str] = []
    for index, (moment, value) in enumerate(series):
        if last > first:
            x = (moment - first) / (last - first) * width
        else:
            x = index / max(len(series) - 1, 1) * width
        y = height / 2 if high == low else height - _fraction(value, low, high) * height
        points.append(f"{x:.1f},{y:.1f}")
    return " ".join(points)


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
def ui_index(
    request: Request,
    topic_id: Optional[int] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    granularity: Optional[str] = None,
    dashboard: DashboardService = Depends(get_dashboard),
) -> HTMLResponse:
    context = DashboardContext()
    chart: Optional[ChartData] = None
    error: Optional[str] = None
    status_code = status.HTTP_200_OK
    submitted = any(value is not None for value in (topic_id, start, end, granularity))
    selected_granularity = granularity or get_settings().default_granularity

    try:
        start_at = parse_selection(start, "start")
        end_at = parse_selection(end, "end")
        context = dashboard.load_context(
            include_bounds=not submitted or start_at is None or end_at is None
        )
        if submitted:
            params = context.default_query(
                selected_granularity, topic_id=topic_id, start=start_at, end=end_at
            )
            chart = dashboard.chart(params, context)
    except HTTPException as exc:
        error = str(exc.detail)
        status_code = exc.status_code
    except DashboardError as exc:
        error = exc.message
        status_code = status_for(exc)

    selected_topic = topic_id if topic_id is not None else context.default_topic_id()
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "topics": context.topics,
            "selected_topic_id": selected_topic,
            "start": start or (format_timestamp(context.earliest) if context.earliest else ""),
            "end": end or (format_timestamp(context.latest) if context.latest else ""),
            "granularities": GRANULARITY_NAMES,
            "selected_granularity": selected_granularity,
            "chart": chart,
            "points": chart_points(chart.samples) if chart else "",
            "chart_width": CHART_WIDTH,
            "chart_height": CHART_HEIGHT,
            "format_timestamp": format_timestamp,
            "error": error,
        },
        status_code=status_code,
    )
