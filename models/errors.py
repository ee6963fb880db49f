"""Error types raised by the sampling core and the dashboard services."""

from __future__ import annotations

from typing import Any, Dict, Optional


class DashboardError(Exception):
    """Base class for dashboard errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidGranularity(DashboardError, ValueError):
    """Raised when a granularity level is not one of the supported values."""


class InvalidReading(DashboardError, ValueError):
    """Raised when a reading carries a timestamp that cannot be ordered."""


class QueryError(DashboardError, ValueError):
    """Base class for query validation failures."""


class InvalidRange(QueryError):
    """Raised when a query starts after it ends."""


class UnknownTopic(QueryError):
    """Raised when a query references a topic that was never listed."""


class FetchError(DashboardError):
    """Raised when the upstream telemetry API cannot be reached or misbehaves."""
