"""Connection settings for the CLI's HTTP client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from settings import get_settings

DEFAULT_TIMEOUT = 10.0

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_HTTP_TIMEOUT"


def _local_base_url() -> str:
    # The server binds 0.0.0.0 by default, which is not a connectable address.
    settings = get_settings()
    host = "localhost" if settings.host in ("0.0.0.0", "::") else settings.host
    return f"http://{host}:{settings.port}"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str
    timeout: float = DEFAULT_TIMEOUT


def _positive_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        parsed = float(raw)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    """Resolve options first, then ``API_BASE_URL``/``CLI_HTTP_TIMEOUT``, then server settings."""
    url = base_url or os.getenv(_BASE_URL_ENV) or _local_base_url()
    resolved_timeout = timeout or _positive_float(os.getenv(_TIMEOUT_ENV)) or DEFAULT_TIMEOUT
    return CLIConfig(base_url=url.rstrip("/"), timeout=resolved_timeout)
