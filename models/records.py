"""Domain models shared across services and datastores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


class DeviceClass(str, Enum):
    """Kinds of sensor node; each one is stored in its own collection."""

    dht_light = "dht-light"
    bme = "bme"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]

    @property
    def metrics(self) -> Tuple["MetricField", ...]:
        return DEVICE_METRICS[self]


@dataclass(frozen=True, slots=True)
class MetricField:
    """Maps a statistic name onto the ``sensors`` field that feeds it."""

    name: str
    field: str
    unit: str

    @property
    def path(self) -> str:
        return f"sensors.{self.field}"


_COLLECTIONS: Dict[DeviceClass, str] = {
    DeviceClass.dht_light: "dhtLightReadings",
    DeviceClass.bme: "bmeReadings",
}

DEVICE_METRICS: Dict[DeviceClass, Tuple[MetricField, ...]] = {
    DeviceClass.dht_light: (
        MetricField("temperature", "temp_dht_c", "°C"),
        MetricField("humidity", "humidity_pct", "%"),
        MetricField("light", "light_lux", "lux"),
    ),
    DeviceClass.bme: (
        MetricField("temperature", "temp_bme_c", "°C"),
        MetricField("humidity", "humidity_bme_pct", "%"),
        MetricField("pressure", "pressure_hpa", "hPa"),
    ),
}


def metric_for(device_class: DeviceClass, name: str) -> MetricField:
    for metric in device_class.metrics:
        if metric.name == name:
            return metric
    raise KeyError(f"Device class {device_class.value!r} has no metric {name!r}.")


@dataclass(frozen=True, slots=True)
class ReadingQuery:
    """Filter over stored readings; ``end`` is exclusive."""

    device_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(slots=True)
class MetricSummary:
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    average: Optional[float] = None


@dataclass(slots=True)
class DailyBucket:
    """Per-day statistics for one device class, keyed by ``YYYY-MM-DD``."""

    day: str
    count: int = 0
    metrics: Dict[str, MetricSummary] = field(default_factory=dict)


@dataclass(slots=True)
class ComplianceCounts:
    """How many readings fell inside each recommended range."""

    total: int = 0
    within: Dict[str, int] = field(default_factory=dict)
    all_within: int = 0
