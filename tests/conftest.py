from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

TOPICS = [
    {"topic_id": 1, "topic_name": "solar/power"},
    {"topic_id": 2, "topic_name": "grid/import"},
]

READINGS: Dict[int, List[Dict[str, Any]]] = {
    1: [
        {"ts": "2024-01-01T10:00:01.200Z", "topic_id": 1, "value_string": "7"},
        {"ts": "2024-01-01T10:00:00.100Z", "topic_id": 1, "value_string": "5"},
        {"ts": 1704103200900, "topic_id": 1, "value_string": "6"},
        {"ts": "2024-01-01T11:30:00Z", "topic_id": 1, "value_string": "8"},
    ],
    2: [],
}


class FakeTelemetryApi:
    """In-memory stand-in for the upstream telemetry API."""

    def __init__(self) -> None:
        self.topics: Any = list(TOPICS)
        self.readings: Dict[int, Any] = {key: list(value) for key, value in READINGS.items()}
        self.earliest: Optional[Any] = "2024-01-01T00:00:00.000Z"
        self.latest: Optional[Any] = "2024-01-01T12:00:00.000Z"
        self.failure: Optional[httpx.Response] = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failure is not None:
            return self.failure
        path = request.url.path
        if path == "/_/topics":
            return httpx.Response(200, json=self.topics)
        if path == "/_/data/timestamp/earliest":
            return httpx.Response(200, content=json.dumps(self.earliest), headers={"content-type": "application/json"})
        if path == "/_/data/timestamp/latest":
            return httpx.Response(200, content=json.dumps(self.latest), headers={"content-type": "application/json"})
        if path == "/_/data":
            topic_id = int(request.url.params["topic_id"])
            return httpx.Response(200, json=self.readings.get(topic_id, []))
        return httpx.Response(404, json={"detail": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def telemetry_api() -> FakeTelemetryApi:
    return FakeTelemetryApi()
