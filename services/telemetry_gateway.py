"""HTTP client for the upstream telemetry API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import httpx

from models.errors import FetchError, InvalidReading
from models.records import Reading, Topic
from services.query import QueryParameters, build_query_params
from services.timestamps import parse_reading, parse_timestamp

logger = logging.getLogger(__name__)

TOPICS_PATH = "/_/topics"
DATA_PATH = "/_/data"
EARLIEST_PATH = "/_/data/timestamp/earliest"
LATEST_PATH = "/_/data/timestamp/latest"


class TelemetryGateway:
    """Fetches topics, timestamp bounds and raw readings.

    Every response is read in full before it is returned; there is no
    partial or streaming delivery.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def list_topics(self) -> List[Topic]:
        payload = self._get_json(TOPICS_PATH)
        if not isinstance(payload, list):
            raise FetchError("Unexpected response payload when listing topics.")
        return [self._parse_topic(entry) for entry in payload]

    def earliest_timestamp(self) -> Optional[datetime]:
        return self._get_bound(EARLIEST_PATH)

    def latest_timestamp(self) -> Optional[datetime]:
        return self._get_bound(LATEST_PATH)

    def fetch_readings(self, params: QueryParameters) -> List[Reading]:
        payload = self._get_json(DATA_PATH, params=build_query_params(params))
        if not isinstance(payload, list):
            raise FetchError(
                "Unexpected response payload when fetching readings.",
                {"topic_id": params.topic_id},
            )
        return [parse_reading(entry) for entry in payload]

    def _get_bound(self, path: str) -> Optional[datetime]:
        payload = self._get_json(path)
        if payload is None:
            return None
        try:
            return parse_timestamp(payload)
        except InvalidReading as exc:
            raise FetchError(f"Unexpected timestamp from {path}: {payload!r}") from exc

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = self._error_detail(exc.response)
            logger.warning(
                "Telemetry API returned an error",
                extra={"url": str(exc.request.url), "status": status, "reason": detail},
            )
            raise FetchError(
                f"Request failed with status {status}: {detail or 'no detail provided.'}",
                {"status": status, "path": path},
            ) from exc
        except httpx.RequestError as exc:
            logger.warning(
                "Telemetry API is unreachable",
                extra={"url": f"{self.base_url}{path}", "reason": str(exc)},
            )
            raise FetchError(f"Request to {path} failed: {exc}", {"path": path}) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"Response from {path} is not valid JSON.", {"path": path}) from exc

    @staticmethod
    def _parse_topic(entry: Any) -> Topic:
        if not isinstance(entry, Mapping):
            raise FetchError("Unexpected topic entry in topic listing.")
        topic_id = entry.get("topic_id")
        topic_name = entry.get("topic_name")
        if isinstance(topic_id, bool) or not isinstance(topic_id, int):
            raise FetchError(f"Topic entry has an invalid topic_id: {topic_id!r}")
        return Topic(topic_id=topic_id, topic_name=str(topic_name or topic_id))

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text.strip()
        if isinstance(data, Mapping) and data.get("detail"):
            return str(data["detail"])
        return response.text.strip()
