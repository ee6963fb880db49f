from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from services.granularity import DEFAULT_GRANULARITY, Granularity

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "TELEMETRY_API_BASE_URL"
_TIMEOUT_ENV = "TELEMETRY_API_TIMEOUT"
_GRANULARITY_ENV = "DEFAULT_GRANULARITY"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    granularity: Granularity = DEFAULT_GRANULARITY


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_granularity(value: Optional[str], default: Granularity) -> Granularity:
    if value is None or not value.strip():
        return default
    try:
        return Granularity.parse(value)
    except ValueError:
        return default


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    granularity: Optional[Granularity] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    if granularity is None:
        granularity = _read_granularity(os.getenv(_GRANULARITY_ENV), DEFAULT_GRANULARITY)
    return CLIConfig(
        base_url=url.rstrip("/"),
        timeout=timeout,
        granularity=granularity,
    )
