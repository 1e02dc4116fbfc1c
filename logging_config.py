from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Sequence

from settings import get_settings

# Attributes passed through ``extra=`` that are rendered after the message.
CONTEXT_KEYS = (
    "device_id",
    "device_class",
    "reading_id",
    "method",
    "path",
    "status_code",
    "operation",
    "collection",
    "store_backend",
    "database",
)

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = {
    "pymongo": "WARNING",
    "uvicorn.access": "WARNING",
}

_configured = False


def _render(value: Any) -> str:
    text = str(value)
    if not text or any(char.isspace() for char in text):
        return repr(text)
    return text


class ContextualFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs for known ``extra`` attributes."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or CONTEXT_KEYS)

    def context(self, record: logging.LogRecord) -> str:
        pairs = (
            (key, getattr(record, key, None)) for key in self._extra_keys
        )
        return " ".join(f"{key}={_render(value)}" for key, value in pairs if value is not None)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = self.context(record)
        if not context:
            return message
        # The base formatter appends tracebacks; context stays on the first line.
        head, sep, tail = message.partition("\n")
        return f"{head} | {context}{sep}{tail}"


def _logging_config(log_level: str | int) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": "logging_config.ContextualFormatter",
                "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "style": "%",
                "extra_keys": list(CONTEXT_KEYS),
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "contextual",
            }
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {name: {"level": level} for name, level in _QUIET_LOGGERS.items()},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging once per process.

    ``serve`` starts uvicorn with ``log_config=None`` so its loggers propagate
    to the root handler installed here.
    """
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level
    dictConfig(_logging_config(log_level))
    _configured = True
