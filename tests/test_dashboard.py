from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from models.errors import InvalidRange, UnknownTopic
from models.records import Topic
from services.dashboard import DashboardContext, DashboardService, build_default_dashboard
from services.granularity import Granularity
from services.query import QueryParameters
from services.sampler import Sampler
from services.telemetry_gateway import TelemetryGateway
from settings import get_settings


@pytest.fixture()
def dashboard(telemetry_api):
    gateway = TelemetryGateway("http://telemetry.test", transport=telemetry_api.transport())
    service = DashboardService(gateway=gateway, sampler=Sampler())
    yield service
    service.close()


def _params(topic_id: int = 1, granularity: Granularity = Granularity.second) -> QueryParameters:
    return QueryParameters(
        topic_id=topic_id,
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
        granularity=granularity,
    )


def test_load_context(dashboard: DashboardService) -> None:
    context = dashboard.load_context()

    assert context.topics == (
        Topic(topic_id=1, topic_name="solar/power"),
        Topic(topic_id=2, topic_name="grid/import"),
    )
    assert context.earliest == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert context.latest == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    assert context.default_topic_id() == 1


def test_load_context_without_bounds_skips_bound_requests(dashboard: DashboardService, telemetry_api) -> None:
    telemetry_api.earliest = {"oops": 1}

    context = dashboard.load_context(include_bounds=False)

    assert context.default_topic_id() == 1
    assert context.earliest is None
    assert context.latest is None
    assert [request.url.path for request in telemetry_api.requests] == ["/_/topics"]


def test_chart_fetches_and_samples(dashboard: DashboardService, caplog) -> None:
    context = dashboard.load_context()

    with caplog.at_level(logging.INFO, logger="services.dashboard"):
        chart = dashboard.chart(_params(), context)

    assert chart.raw_count == 4
    assert [reading.value for reading in chart.samples] == ["5", "7", "8"]
    assert chart.label == "solar/power"
    record = next(record for record in caplog.records if record.getMessage() == "Sampled readings")
    assert record.sample_count == 3
    assert record.granularity == "second"


def test_chart_without_context_skips_topic_check(dashboard: DashboardService, telemetry_api) -> None:
    chart = dashboard.chart(_params(topic_id=9, granularity=Granularity.hour))

    assert chart.samples == ()
    assert chart.topic is None
    assert chart.label == "Topic 9"


def test_chart_rejects_unknown_topic_before_fetching(dashboard: DashboardService, telemetry_api) -> None:
    context = dashboard.load_context()
    request_count = len(telemetry_api.requests)

    with pytest.raises(UnknownTopic):
        dashboard.chart(_params(topic_id=9), context)

    assert len(telemetry_api.requests) == request_count


def test_chart_rejects_inverted_range_before_fetching(dashboard: DashboardService, telemetry_api) -> None:
    params = QueryParameters(
        topic_id=1,
        start=datetime(2024, 1, 2, tzinfo=timezone.utc),
        end=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    with pytest.raises(InvalidRange):
        dashboard.chart(params)

    assert telemetry_api.requests == []


def test_default_query_uses_first_topic_and_bounds() -> None:
    context = DashboardContext(
        topics=(Topic(topic_id=5, topic_name="a"), Topic(topic_id=6, topic_name="b")),
        earliest=datetime(2023, 1, 1, tzinfo=timezone.utc),
        latest=datetime(2023, 6, 1, tzinfo=timezone.utc),
    )

    params = context.default_query("minute")

    assert params == QueryParameters(
        topic_id=5,
        start=datetime(2023, 1, 1, tzinfo=timezone.utc),
        end=datetime(2023, 6, 1, tzinfo=timezone.utc),
        granularity=Granularity.minute,
    )
    assert context.default_query(Granularity.hour, topic_id=6).topic_id == 6
    assert context.find_topic(6) == Topic(topic_id=6, topic_name="b")
    assert context.find_topic(7) is None


def test_default_query_without_bounds_uses_now() -> None:
    params = DashboardContext().default_query(Granularity.hour)

    assert params.start.tzinfo is not None
    assert params.start == params.end
    assert params.topic_id == 0


def test_build_default_dashboard_uses_settings(monkeypatch) -> None:
    monkeypatch.setenv("TELEMETRY_API_BASE_URL", "http://upstream.example:9000/")
    get_settings.cache_clear()
    build_default_dashboard.cache_clear()

    try:
        service = build_default_dashboard()
        assert service.gateway.base_url == "http://upstream.example:9000"
        assert build_default_dashboard() is service
        service.close()
    finally:
        build_default_dashboard.cache_clear()
        get_settings.cache_clear()
