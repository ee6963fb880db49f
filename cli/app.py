from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import NoReturn, Optional

import typer

from cli.config import CLIConfig, load_config
from cli.render import render_bounds, render_chart, render_topics
from models.errors import DashboardError, InvalidReading
from services.dashboard import DashboardService
from services.granularity import GRANULARITY_NAMES, Granularity
from services.sampler import Sampler
from services.telemetry_gateway import TelemetryGateway
from services.timestamps import parse_timestamp


@dataclass
class CLIState:
    config: CLIConfig
    dashboard: DashboardService


app = typer.Typer(
    help="Chart downsampled readings from the solar monitor telemetry API.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _fail(exc: DashboardError) -> NoReturn:
    typer.secho(exc.message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _parse_option(value: Optional[str], hint: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except InvalidReading as exc:
        raise typer.BadParameter(f"Invalid timestamp {value!r}.", param_hint=hint) from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Telemetry API base URL (defaults to TELEMETRY_API_BASE_URL env or http://localhost:8080).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the telemetry API.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    gateway = TelemetryGateway(config.base_url, timeout=config.timeout)
    dashboard = DashboardService(gateway=gateway, sampler=Sampler())
    ctx.obj = CLIState(config=config, dashboard=dashboard)
    ctx.call_on_close(dashboard.close)


@app.command("topics")
def topics_command(ctx: typer.Context) -> None:
    """List the topics that can be charted."""
    state = _get_state(ctx)
    try:
        topics = state.dashboard.gateway.list_topics()
    except DashboardError as exc:
        _fail(exc)
    render_topics(topics)


@app.command("bounds")
def bounds_command(ctx: typer.Context) -> None:
    """Show the earliest and latest reading timestamps."""
    state = _get_state(ctx)
    try:
        earliest = state.dashboard.gateway.earliest_timestamp()
        latest = state.dashboard.gateway.latest_timestamp()
    except DashboardError as exc:
        _fail(exc)
    render_bounds(earliest, latest)


@app.command("granularities")
def granularities_command() -> None:
    """List sampling granularities, coarsest first."""
    for name in GRANULARITY_NAMES:
        typer.echo(name)


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    topic: Optional[int] = typer.Option(
        None, "--topic", "-t", help="Topic ID (defaults to the first listed topic)."
    ),
    start: Optional[str] = typer.Option(
        None, "--start", "-s", help="Start timestamp, ISO-8601 or epoch milliseconds."
    ),
    end: Optional[str] = typer.Option(
        None, "--end", "-e", help="End timestamp, ISO-8601 or epoch milliseconds."
    ),
    granularity: Optional[str] = typer.Option(
        None,
        "--granularity",
        "-g",
        help=f"One of: {', '.join(GRANULARITY_NAMES)}.",
    ),
) -> None:
    """Fetch readings for a topic and print them sampled at a granularity."""
    state = _get_state(ctx)
    start_at = _parse_option(start, "--start")
    end_at = _parse_option(end, "--end")
    try:
        level = Granularity.parse(granularity) if granularity else state.config.granularity
        context = state.dashboard.load_context(include_bounds=start_at is None or end_at is None)
        params = context.default_query(level, topic_id=topic, start=start_at, end=end_at)
        chart = state.dashboard.chart(params, context)
    except DashboardError as exc:
        _fail(exc)
    render_chart(chart)
