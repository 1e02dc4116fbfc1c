"""HTTP routes for aggregate statistics."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.schemas import (
    BmeDailyResponse,
    ComplianceResponse,
    CurrentStatsResponse,
    DailyStatsResponse,
    DhtLightDailyResponse,
)
from models.records import DeviceClass
from services.errors import ReadingNotFoundError
from services.stats import StatsService

router = APIRouter(prefix="/api/stats", tags=["stats"])
daily_router = APIRouter(prefix="/api/dayle-stats", tags=["stats"])


def get_stats_service(request: Request) -> StatsService:
    return request.app.state.stats_service


@router.get(
    "/current",
    response_model=CurrentStatsResponse,
    summary="Latest reading of each device class with range evaluation.",
)
def current_stats(
    service: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    try:
        return service.current()
    except ReadingNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get(
    "/daily",
    response_model=DailyStatsResponse,
    summary="Daily min/max/avg for both device classes (default: last 7 days).",
)
def daily_stats(
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    service: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return service.daily(from_, to)


@router.get(
    "/compliance",
    response_model=ComplianceResponse,
    summary="Share of readings inside the recommended ranges (default: last 7 days).",
)
def compliance_stats(
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    service: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return service.compliance(from_, to)


@daily_router.get(
    "/daily-bme",
    response_model=BmeDailyResponse,
    summary="Daily BME680 summary: temperature, humidity and pressure.",
)
def daily_bme(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    service: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return {"ok": True, "data": service.daily_summary(DeviceClass.bme, start, end)}


@daily_router.get(
    "/daily-dht-light",
    response_model=DhtLightDailyResponse,
    summary="Daily DHT22 + light summary: temperature, humidity and illuminance.",
)
def daily_dht_light(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    service: StatsService = Depends(get_stats_service),
) -> Dict[str, Any]:
    return {"ok": True, "data": service.daily_summary(DeviceClass.dht_light, start, end)}
