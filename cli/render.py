from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

import typer

from models.records import Reading, Topic
from services.dashboard import ChartData
from services.query import format_timestamp

SPARKLINE_RAMP = "▁▂▃▄▅▆▇█"


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_optional(value: Optional[datetime]) -> str:
    return format_timestamp(value) if value is not None else "unknown"


def _fraction(value: float, low: float, high: float) -> float:
    """Position of ``value`` between ``low`` and ``high``, even when the span overflows."""
    span = high - low
    if math.isinf(span):
        return (value / 2 - low / 2) / (high / 2 - low / 2)
    return (value - low) / span


def sparkline(values: Sequence[float]) -> str:
    """Unicode block sparkline; a flat series renders at mid height."""
    if not values:
        return ""
    low, high = min(values), max(values)
    middle = SPARKLINE_RAMP[len(SPARKLINE_RAMP) // 2]
    if high == low:
        return middle * len(values)
    last = len(SPARKLINE_RAMP) - 1
    return "".join(
        SPARKLINE_RAMP[int(round(_fraction(value, low, high) * last))] for value in values
    )


def numeric_values(readings: Iterable[Reading]) -> List[float]:
    """Finite numeric values among ``readings``; other payloads are skipped."""
    values: List[float] = []
    for reading in readings:
        try:
            value = float(reading.value)
        except ValueError:
            continue
        if math.isfinite(value):
            values.append(value)
    return values


def render_topics(topics: Sequence[Topic]) -> None:
    echo_heading("Topics")
    if not topics:
        typer.echo("No topics available.")
        return
    for topic in topics:
        typer.echo(f"  - {topic.topic_id}: {topic.topic_name}")


def render_bounds(earliest: Optional[datetime], latest: Optional[datetime]) -> None:
    echo_heading("Reading Bounds")
    echo_key_values([("earliest", _format_optional(earliest)), ("latest", _format_optional(latest))])


def render_chart(chart: ChartData) -> None:
    echo_heading(chart.label)
    echo_key_values(
        [
            ("topic_id", chart.query.topic_id),
            ("start", format_timestamp(chart.query.start)),
            ("end", format_timestamp(chart.query.end)),
            ("granularity", chart.query.granularity.value),
            ("raw_count", chart.raw_count),
            ("sample_count", len(chart.samples)),
        ]
    )

    typer.echo()
    echo_heading("Samples")
    if not chart.samples:
        typer.echo("No readings in the selected range.")
        return

    line = sparkline(numeric_values(chart.samples))
    if line:
        typer.echo(line)
    for reading in chart.samples:
        typer.echo(f"  {format_timestamp(reading.timestamp)}  {reading.value}")
