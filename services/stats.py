"""Daily summaries, range compliance and current snapshot over stored readings."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from datastore.base import ReadingStore
from models.records import DailyBucket, DeviceClass, MetricField, ReadingQuery, metric_for
from services.aggregator import percentage
from services.classification import RECOMMENDED_RANGES, Range, RangeStatus, classify_range
from services.errors import ReadingNotFoundError
from services.windows import TimeWindow, recent_window, resolve_window


class StatsService:

    def __init__(
        self,
        store: ReadingStore,
        timezone: str,
        ranges: Optional[Mapping[str, Range]] = None,
    ) -> None:
        self.store = store
        self.timezone = timezone
        self.zone = ZoneInfo(timezone)
        self.ranges = dict(ranges or RECOMMENDED_RANGES)

    def daily_summary(
        self,
        device_class: DeviceClass,
        raw_start: Optional[str] = None,
        raw_end: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Per-day summary over an optional, otherwise unbounded, window."""
        window = resolve_window(raw_start, raw_end, self.zone)
        return self._daily(device_class, window)

    def daily(
        self,
        raw_from: Optional[str] = None,
        raw_to: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        window = recent_window(raw_from, raw_to, self.zone, now=now)
        return {
            "range": {"from": window.start, "to": window.end},
            "bme": self._daily(DeviceClass.bme, window),
            "dhtLight": self._daily(DeviceClass.dht_light, window),
        }

    def compliance(
        self,
        raw_from: Optional[str] = None,
        raw_to: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        window = recent_window(raw_from, raw_to, self.zone, now=now)
        query = ReadingQuery(start=window.start, end=window.end)

        climate = self.store.compliance_counts(
            DeviceClass.bme,
            query,
            {
                "temperature": self._criterion(DeviceClass.bme, "temperature"),
                "humidity": self._criterion(DeviceClass.bme, "humidity"),
            },
        )
        light = self.store.compliance_counts(
            DeviceClass.dht_light,
            query,
            {"light": self._criterion(DeviceClass.dht_light, "light")},
        )

        return {
            "range": {"from": window.start, "to": window.end},
            "temperatureHumidity": {
                "total": climate.total,
                "tempOkPct": percentage(climate.within["temperature"], climate.total),
                "humOkPct": percentage(climate.within["humidity"], climate.total),
                "bothOkPct": percentage(climate.all_within, climate.total),
            },
            "light": {
                "total": light.total,
                "lightOkPct": percentage(light.within["light"], light.total),
            },
        }

    def current(self) -> Dict[str, Any]:
        bme_latest = self.store.latest(DeviceClass.bme)
        dht_latest = self.store.latest(DeviceClass.dht_light)
        if bme_latest is None and dht_latest is None:
            raise ReadingNotFoundError("No readings stored yet.")

        # BME680 is the reference for temperature and humidity.
        return {
            "sources": {"bmeLatest": bme_latest, "dhtLatest": dht_latest},
            "derived": {
                "temperature": self._classified_value(bme_latest, DeviceClass.bme, "temperature"),
                "humidity": self._classified_value(bme_latest, DeviceClass.bme, "humidity"),
                "light": self._classified_value(dht_latest, DeviceClass.dht_light, "light"),
                "pressure": {
                    "value": _sensor(bme_latest, metric_for(DeviceClass.bme, "pressure").field),
                    "unit": metric_for(DeviceClass.bme, "pressure").unit,
                },
            },
        }

    def _criterion(self, device_class: DeviceClass, name: str) -> Tuple[MetricField, Range]:
        return metric_for(device_class, name), self.ranges[name]

    def _classified_value(
        self,
        document: Optional[Mapping[str, Any]],
        device_class: DeviceClass,
        name: str,
    ) -> Dict[str, Any]:
        metric = metric_for(device_class, name)
        value = _sensor(document, metric.field)
        status = classify_range(value, self.ranges[name])
        return {
            "value": value,
            "unit": metric.unit,
            "status": status,
            "ok": status is RangeStatus.within,
        }

    def _daily(self, device_class: DeviceClass, window: TimeWindow) -> List[Dict[str, Any]]:
        query = ReadingQuery(start=window.start, end=window.end)
        buckets = self.store.daily_stats(device_class, query, self.timezone)
        return [self._summarize(bucket) for bucket in buckets]

    def _summarize(self, bucket: DailyBucket) -> Dict[str, Any]:
        summary: Dict[str, Any] = {"date": bucket.day, "count": bucket.count}
        for name, stats in bucket.metrics.items():
            entry: Dict[str, Any] = {
                "min": stats.minimum,
                "max": stats.maximum,
                "avg": stats.average,
            }
            if name in self.ranges:
                entry["status"] = classify_range(stats.average, self.ranges[name])
            summary[name] = entry
        return summary


def _sensor(document: Optional[Mapping[str, Any]], field: str) -> Optional[float]:
    if document is None:
        return None
    return (document.get("sensors") or {}).get(field)
