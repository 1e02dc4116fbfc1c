from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from models.records import (
    ComplianceCounts,
    DailyBucket,
    DeviceClass,
    MetricField,
    ReadingQuery,
)
from services.classification import Range

Criteria = Mapping[str, Tuple[MetricField, Range]]


class StoreError(RuntimeError):
    """Raised when the backing store is unreachable or an operation fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.collection = collection


class ReadingStore(Protocol):
    """Operations the services need from a reading collection backend."""

    def ping(self) -> None: ...

    def ensure_indexes(self) -> None: ...

    def close(self) -> None: ...

    def insert(self, device_class: DeviceClass, document: Dict[str, Any]) -> Dict[str, Any]: ...

    def count(self, device_class: DeviceClass, query: ReadingQuery) -> int: ...

    def find(
        self,
        device_class: DeviceClass,
        query: ReadingQuery,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]: ...

    def latest(
        self, device_class: DeviceClass, device_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]: ...

    def daily_stats(
        self, device_class: DeviceClass, query: ReadingQuery, timezone: str
    ) -> List[DailyBucket]: ...

    def compliance_counts(
        self, device_class: DeviceClass, query: ReadingQuery, criteria: Criteria
    ) -> ComplianceCounts: ...
