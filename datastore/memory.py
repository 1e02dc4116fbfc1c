from __future__ import annotations

import copy
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from datastore.base import Criteria
from models.records import ComplianceCounts, DailyBucket, DeviceClass, ReadingQuery
from services.aggregator import Aggregator


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _matches(document: Dict[str, Any], query: ReadingQuery) -> bool:
    if query.device_id is not None and document.get("deviceId") != query.device_id:
        return False
    created_at = _as_utc(document["createdAt"])
    if query.start is not None and created_at < _as_utc(query.start):
        return False
    if query.end is not None and created_at >= _as_utc(query.end):
        return False
    return True


class InMemoryReadingStore:
    """Process-local reading collections with the same semantics as the Mongo store."""

    def __init__(self, aggregator: Optional[Aggregator] = None) -> None:
        self._collections: Dict[DeviceClass, List[Dict[str, Any]]] = {
            device_class: [] for device_class in DeviceClass
        }
        self._aggregator = aggregator or Aggregator()
        self._lock = Lock()

    def ping(self) -> None:
        return None

    def ensure_indexes(self) -> None:
        return None

    def close(self) -> None:
        return None

    def insert(self, device_class: DeviceClass, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", uuid4().hex)
        stored.setdefault("createdAt", datetime.now(timezone.utc))
        with self._lock:
            self._collections[device_class].append(stored)
            return copy.deepcopy(stored)

    def count(self, device_class: DeviceClass, query: ReadingQuery) -> int:
        with self._lock:
            return sum(1 for item in self._collections[device_class] if _matches(item, query))

    def find(
        self,
        device_class: DeviceClass,
        query: ReadingQuery,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        # Insertion order breaks ties between equal timestamps.
        ordered = sorted(
            enumerate(self._scan(device_class, query)),
            key=lambda pair: (_as_utc(pair[1]["createdAt"]), pair[0]),
            reverse=True,
        )
        end = skip + limit if limit else None
        return [item for _, item in ordered[skip:end]]

    def latest(
        self, device_class: DeviceClass, device_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        found = self.find(device_class, ReadingQuery(device_id=device_id), limit=1)
        return found[0] if found else None

    def daily_stats(
        self, device_class: DeviceClass, query: ReadingQuery, timezone: str
    ) -> List[DailyBucket]:
        return self._aggregator.daily(
            self._scan(device_class, query), device_class.metrics, ZoneInfo(timezone)
        )

    def compliance_counts(
        self, device_class: DeviceClass, query: ReadingQuery, criteria: Criteria
    ) -> ComplianceCounts:
        return self._aggregator.compliance(self._scan(device_class, query), criteria)

    def _scan(self, device_class: DeviceClass, query: ReadingQuery) -> List[Dict[str, Any]]:
        """Return deep copies of the documents matching ``query``."""

        with self._lock:
            return [
                copy.deepcopy(item)
                for item in self._collections[device_class]
                if _matches(item, query)
            ]
