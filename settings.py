from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_MONGODB_URI_ENV = "MONGODB_URI"
_MONGODB_DATABASE_ENV = "MONGODB_DATABASE"
_MONGODB_TIMEOUT_ENV = "MONGODB_TIMEOUT_MS"
_STORE_BACKEND_ENV = "READINGS_STORE_BACKEND"
_HOST_ENV = "HOST"
_PORT_ENV = "PORT"
_LIGHT_THRESHOLDS_ENV = "LIGHT_THRESHOLDS"
_TIMEZONE_ENV = "STATS_TIMEZONE"
_PAGE_DEFAULT_ENV = "PAGE_DEFAULT_LIMIT"
_PAGE_MAX_ENV = "PAGE_MAX_LIMIT"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

STORE_BACKENDS = ("mongo", "memory")
DEFAULT_LIGHT_THRESHOLDS = (10.0, 50.0, 200.0, 1000.0)


@dataclass(frozen=True)
class Settings:
    mongodb_uri: str
    mongodb_database: Optional[str]
    mongodb_timeout_ms: int
    store_backend: str
    host: str
    port: int
    light_thresholds: Tuple[float, float, float, float]
    timezone: str
    page_default_limit: int
    page_max_limit: int
    cors_origins: Tuple[str, ...]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_store_backend(default: str) -> str:
    candidate = _read_str_env(_STORE_BACKEND_ENV, default).lower()
    return candidate if candidate in STORE_BACKENDS else default


def _read_light_thresholds(
    default: Tuple[float, float, float, float],
) -> Tuple[float, float, float, float]:
    value = os.getenv(_LIGHT_THRESHOLDS_ENV)
    if value is None or not value.strip():
        return default
    try:
        parsed = tuple(float(part) for part in value.split(","))
    except ValueError:
        return default
    if len(parsed) != 4:
        return default
    if any(lower >= upper for lower, upper in zip(parsed, parsed[1:])):
        return default
    return parsed  # type: ignore[return-value]


def _read_timezone(default: str) -> str:
    candidate = _read_str_env(_TIMEZONE_ENV, default)
    try:
        ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        return default
    return candidate


def _read_cors_origins(default: str) -> Tuple[str, ...]:
    raw = _read_str_env(_CORS_ORIGINS_ENV, default)
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or (default,)


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
    default_limit = _read_positive_int(_PAGE_DEFAULT_ENV, 50)
    max_limit = _read_positive_int(_PAGE_MAX_ENV, 200)
    return Settings(
        mongodb_uri=_read_str_env(
            _MONGODB_URI_ENV, "mongodb://localhost:27017/esp32_sensors_db"
        ),
        mongodb_database=_read_optional_env(_MONGODB_DATABASE_ENV, None),
        mongodb_timeout_ms=_read_positive_int(_MONGODB_TIMEOUT_ENV, 5000),
        store_backend=_read_store_backend("mongo"),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_int(_PORT_ENV, 4000),
        light_thresholds=_read_light_thresholds(DEFAULT_LIGHT_THRESHOLDS),
        timezone=_read_timezone("America/Mexico_City"),
        page_default_limit=min(default_limit, max_limit),
        page_max_limit=max_limit,
        cors_origins=_read_cors_origins("*"),
        log_level=_read_log_level("INFO"),
    )
