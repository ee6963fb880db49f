from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from services.granularity import DEFAULT_GRANULARITY, GRANULARITY_NAMES

_API_BASE_URL_ENV = "TELEMETRY_API_BASE_URL"
_API_TIMEOUT_ENV = "TELEMETRY_API_TIMEOUT"
_GRANULARITY_ENV = "DEFAULT_GRANULARITY"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    api_timeout: float
    default_granularity: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_timeout(default: float) -> float:
    value = os.getenv(_API_TIMEOUT_ENV)
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


def _read_granularity(default: str) -> str:
    candidate = _read_str_env(_GRANULARITY_ENV, default).lower()
    return candidate if candidate in GRANULARITY_NAMES else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        api_base_url=_read_str_env(_API_BASE_URL_ENV, "http://localhost:8080").rstrip("/"),
        api_timeout=_read_timeout(30.0),
        default_granularity=_read_granularity(DEFAULT_GRANULARITY.value),
        log_level=_read_log_level("INFO"),
    )
