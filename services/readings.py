"""Ingestion and query orchestration for sensor readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from app.schemas import BmeReadingIn, DhtLightReadingIn
from datastore.base import ReadingStore
from models.records import DeviceClass, ReadingQuery
from services.classification import (
    LightThresholds,
    classify_light_level,
    classify_light_state,
)
from services.errors import ReadingNotFoundError, ReadingValidationError
from services.windows import resolve_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _parse_positive(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def resolve_pagination(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int,
    max_limit: int,
) -> Pagination:
    """Lenient page/limit parsing: bad values fall back, large limits are capped."""
    resolved_limit = min(_parse_positive(limit) or default_limit, max_limit)
    return Pagination(page=_parse_positive(page) or 1, limit=resolved_limit)


def normalize_device_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        raise ReadingValidationError("deviceId must be a non-empty string.")
    return normalized


def device_filter(value: Optional[str]) -> Optional[str]:
    """Normalize a ``deviceId`` query value; an empty value means no filter."""
    if value is None or not value.strip():
        return None
    return normalize_device_id(value)


def _now() -> datetime:
    # MongoDB keeps millisecond precision; match it so responses equal later reads.
    current = datetime.now(timezone.utc)
    return current.replace(microsecond=current.microsecond // 1000 * 1000)


class ReadingService:
    """Validates payloads into documents and reads them back from the store."""

    def __init__(
        self,
        store: ReadingStore,
        thresholds: LightThresholds,
        timezone: str,
        default_limit: int = 50,
        max_limit: int = 200,
    ) -> None:
        self.store = store
        self.thresholds = thresholds
        self.zone = ZoneInfo(timezone)
        self.default_limit = default_limit
        self.max_limit = max_limit

    def ingest_dht_light(self, payload: DhtLightReadingIn) -> Dict[str, Any]:
        sensors = payload.sensors.model_dump()
        lux = sensors["light_lux"]
        sensors["light_state"] = classify_light_state(lux, self.thresholds)
        sensors["light_level"] = classify_light_level(lux, self.thresholds)
        return self._store(DeviceClass.dht_light, payload.device_id, sensors)

    def ingest_bme(self, payload: BmeReadingIn) -> Dict[str, Any]:
        return self._store(DeviceClass.bme, payload.device_id, payload.sensors.model_dump())

    def list_readings(
        self,
        device_class: DeviceClass,
        device_id: Optional[str] = None,
        raw_from: Optional[str] = None,
        raw_to: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> Dict[str, Any]:
        window = resolve_window(raw_from, raw_to, self.zone)
        query = ReadingQuery(
            device_id=device_filter(device_id),
            start=window.start,
            end=window.end,
        )
        pagination = resolve_pagination(page, limit, self.default_limit, self.max_limit)

        total = self.store.count(device_class, query)
        documents = self.store.find(
            device_class, query, skip=pagination.skip, limit=pagination.limit
        )
        return {
            "data": documents,
            "meta": {
                "total": total,
                "page": pagination.page,
                "limit": pagination.limit,
                "totalPages": math.ceil(total / pagination.limit),
            },
        }

    def latest(
        self, device_class: DeviceClass, device_id: Optional[str] = None
    ) -> Dict[str, Any]:
        normalized = device_filter(device_id)
        document = self.store.latest(device_class, normalized)
        if document is None:
            if normalized is None:
                raise ReadingNotFoundError(f"No {device_class.value} readings stored yet.")
            raise ReadingNotFoundError(
                f"No {device_class.value} readings for device {normalized!r}."
            )
        return document

    def _store(
        self, device_class: DeviceClass, device_id: str, sensors: Dict[str, Any]
    ) -> Dict[str, Any]:
        document = {"deviceId": device_id, "sensors": sensors, "createdAt": _now()}
        stored = self.store.insert(device_class, document)
        logger.info(
            "Stored reading",
            extra={
                "device_id": device_id,
                "device_class": device_class.value,
                "reading_id": str(stored["_id"]),
            },
        )
        return stored
