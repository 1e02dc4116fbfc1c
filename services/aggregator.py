"""Aggregation logic for stored sensor readings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.records import ComplianceCounts, DailyBucket, MetricField, MetricSummary
from services.classification import Range

Document = Mapping[str, Any]


def day_key(timestamp: datetime, zone: tzinfo) -> str:
    """Calendar day of ``timestamp`` in ``zone``; naive values are read as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(zone).strftime("%Y-%m-%d")


def sensor_value(document: Document, field: str) -> Optional[float]:
    sensors = document.get("sensors") or {}
    value = sensors.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total * 100


@dataclass
class _Accumulator:
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    total: float = 0.0
    samples: int = 0

    def add(self, value: Optional[float]) -> None:
        if value is None:
            return
        self.samples += 1
        self.total += value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value

    def summary(self) -> MetricSummary:
        average = self.total / self.samples if self.samples else None
        return MetricSummary(minimum=self.minimum, maximum=self.maximum, average=average)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def daily(
        self,
        documents: Iterable[Document],
        metrics: Sequence[MetricField],
        zone: tzinfo,
    ) -> List[DailyBucket]:
        counts: Dict[str, int] = {}
        accumulators: Dict[str, Dict[str, _Accumulator]] = {}

        for document in documents:
            key = day_key(document["createdAt"], zone)
            counts[key] = counts.get(key, 0) + 1
            per_metric = accumulators.setdefault(
                key, {metric.name: _Accumulator() for metric in metrics}
            )
            for metric in metrics:
                per_metric[metric.name].add(sensor_value(document, metric.field))

        return [
            DailyBucket(
                day=key,
                count=counts[key],
                metrics={
                    name: accumulator.summary()
                    for name, accumulator in accumulators[key].items()
                },
            )
            for key in sorted(counts)
        ]

    def compliance(
        self,
        documents: Iterable[Document],
        criteria: Mapping[str, Tuple[MetricField, Range]],
    ) -> ComplianceCounts:
        counts = ComplianceCounts(within={name: 0 for name in criteria})

        for document in documents:
            counts.total += 1
            passed = True
            for name, (metric, bounds) in criteria.items():
                if bounds.contains(sensor_value(document, metric.field)):
                    counts.within[name] += 1
                else:
                    passed = False
            if passed:
                counts.all_within += 1

        return counts
