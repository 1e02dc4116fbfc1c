from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from datastore.base import Criteria, StoreError
from datastore.queries import (
    LATEST_FIRST,
    READING_INDEXES,
    build_compliance_pipeline,
    build_daily_pipeline,
    build_match,
    parse_compliance_row,
    parse_daily_rows,
)
from models.records import ComplianceCounts, DailyBucket, DeviceClass, ReadingQuery

_FALLBACK_DATABASE = "esp32_sensors_db"


class MongoReadingStore:
    """Reading collections backed by a MongoDB database."""

    def __init__(self, client: MongoClient, database: Optional[str] = None) -> None:
        self.client = client
        if database:
            self.database = client[database]
        else:
            self.database = client.get_default_database(default=_FALLBACK_DATABASE)

    def collection(self, device_class: DeviceClass) -> Collection:
        return self.database[device_class.collection]

    def ping(self) -> None:
        with self._translate_errors("ping"):
            self.client.admin.command("ping")

    def ensure_indexes(self) -> None:
        for device_class in DeviceClass:
            collection = self.collection(device_class)
            with self._translate_errors("create_index", device_class):
                for keys, options in READING_INDEXES:
                    collection.create_index(keys, **options)

    def close(self) -> None:
        self.client.close()

    def insert(self, device_class: DeviceClass, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(document)
        with self._translate_errors("insert", device_class):
            result = self.collection(device_class).insert_one(stored)
        stored["_id"] = result.inserted_id
        return stored

    def count(self, device_class: DeviceClass, query: ReadingQuery) -> int:
        with self._translate_errors("count", device_class):
            return self.collection(device_class).count_documents(build_match(query))

    def find(
        self,
        device_class: DeviceClass,
        query: ReadingQuery,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        with self._translate_errors("find", device_class):
            cursor = (
                self.collection(device_class)
                .find(build_match(query))
                .sort(LATEST_FIRST)
                .skip(skip)
                .limit(limit)
            )
            return list(cursor)

    def latest(
        self, device_class: DeviceClass, device_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        with self._translate_errors("latest", device_class):
            return self.collection(device_class).find_one(
                build_match(ReadingQuery(device_id=device_id)), sort=LATEST_FIRST
            )

    def daily_stats(
        self, device_class: DeviceClass, query: ReadingQuery, timezone: str
    ) -> List[DailyBucket]:
        pipeline = build_daily_pipeline(query, device_class.metrics, timezone)
        with self._translate_errors("daily_stats", device_class):
            rows = list(self.collection(device_class).aggregate(pipeline))
        return parse_daily_rows(rows, device_class.metrics)

    def compliance_counts(
        self, device_class: DeviceClass, query: ReadingQuery, criteria: Criteria
    ) -> ComplianceCounts:
        pipeline = build_compliance_pipeline(query, criteria)
        with self._translate_errors("compliance", device_class):
            rows = list(self.collection(device_class).aggregate(pipeline))
        return parse_compliance_row(rows[0] if rows else None, criteria)

    @contextmanager
    def _translate_errors(
        self, operation: str, device_class: Optional[DeviceClass] = None
    ) -> Iterator[None]:
        try:
            yield
        except PyMongoError as exc:
            collection = device_class.collection if device_class else None
            target = f" on {collection!r}" if collection else ""
            raise StoreError(
                f"MongoDB {operation} failed{target}: {exc}",
                operation=operation,
                collection=collection,
            ) from exc
