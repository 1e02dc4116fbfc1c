"""Builders for MongoDB filters and aggregation pipelines.

Each function returns a plain descriptor (dicts and lists) that the Mongo
store hands to ``pymongo`` unchanged, so they can be checked without a
running server.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from models.records import (
    ComplianceCounts,
    DailyBucket,
    MetricField,
    MetricSummary,
    ReadingQuery,
)
from services.classification import Range

LATEST_FIRST: List[Tuple[str, int]] = [("createdAt", -1)]

ALL_WITHIN_KEY = "__all_within"


def build_match(query: ReadingQuery) -> Dict[str, Any]:
    match: Dict[str, Any] = {}
    if query.device_id is not None:
        match["deviceId"] = query.device_id
    if query.start is not None or query.end is not None:
        created: Dict[str, Any] = {}
        if query.start is not None:
            created["$gte"] = query.start
        if query.end is not None:
            created["$lt"] = query.end
        match["createdAt"] = created
    return match


def _stat_key(metric: MetricField, stat: str) -> str:
    return f"{metric.name}_{stat}"


def build_daily_pipeline(
    query: ReadingQuery,
    metrics: Sequence[MetricField],
    timezone: str,
) -> List[Dict[str, Any]]:
    group: Dict[str, Any] = {"_id": "$day", "count": {"$sum": 1}}
    for metric in metrics:
        source = f"${metric.path}"
        group[_stat_key(metric, "min")] = {"$min": source}
        group[_stat_key(metric, "max")] = {"$max": source}
        group[_stat_key(metric, "avg")] = {"$avg": source}

    return [
        {"$match": build_match(query)},
        {
            "$addFields": {
                "day": {
                    "$dateToString": {
                        "format": "%Y-%m-%d",
                        "date": "$createdAt",
                        "timezone": timezone,
                    }
                }
            }
        },
        {"$group": group},
        {"$sort": {"_id": 1}},
    ]


def parse_daily_rows(
    rows: Sequence[Mapping[str, Any]],
    metrics: Sequence[MetricField],
) -> List[DailyBucket]:
    return [
        DailyBucket(
            day=row["_id"],
            count=row["count"],
            metrics={
                metric.name: MetricSummary(
                    minimum=row.get(_stat_key(metric, "min")),
                    maximum=row.get(_stat_key(metric, "max")),
                    average=row.get(_stat_key(metric, "avg")),
                )
                for metric in metrics
            },
        )
        for row in rows
    ]


def _within_expression(metric: MetricField, bounds: Range) -> Dict[str, Any]:
    source = f"${metric.path}"
    # Aggregation comparisons order null below numbers, so missing values fail $gte.
    return {
        "$and": [
            {"$gte": [source, bounds.minimum]},
            {"$lte": [source, bounds.maximum]},
        ]
    }


def build_compliance_pipeline(
    query: ReadingQuery,
    criteria: Mapping[str, Tuple[MetricField, Range]],
) -> List[Dict[str, Any]]:
    flags = {
        name: _within_expression(metric, bounds)
        for name, (metric, bounds) in criteria.items()
    }
    group: Dict[str, Any] = {"_id": None, "total": {"$sum": 1}}
    for name in criteria:
        group[name] = {"$sum": {"$cond": [f"${name}", 1, 0]}}
    group[ALL_WITHIN_KEY] = {
        "$sum": {"$cond": [{"$and": [f"${name}" for name in criteria]}, 1, 0]}
    }

    return [
        {"$match": build_match(query)},
        {"$project": flags},
        {"$group": group},
    ]


def parse_compliance_row(
    row: Optional[Mapping[str, Any]],
    criteria: Mapping[str, Tuple[MetricField, Range]],
) -> ComplianceCounts:
    if row is None:
        return ComplianceCounts(within={name: 0 for name in criteria})
    return ComplianceCounts(
        total=row.get("total", 0),
        within={name: row.get(name, 0) for name in criteria},
        all_within=row.get(ALL_WITHIN_KEY, 0),
    )


# Index specs as (keys, options) pairs for ``create_index``.
READING_INDEXES: List[Tuple[List[Tuple[str, int]], Dict[str, Any]]] = [
    ([("deviceId", 1)], {}),
    ([("createdAt", 1)], {}),
    ([("deviceId", 1), ("createdAt", -1)], {}),
]
