"""HTTP route definitions for reading ingestion and queries."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.schemas import (
    BmeReading,
    BmeReadingIn,
    BmeReadingPage,
    DhtLightReading,
    DhtLightReadingIn,
    DhtLightReadingPage,
)
from models.records import DeviceClass
from services.errors import ReadingNotFoundError
from services.readings import ReadingService

router = APIRouter()
dht_light_router = APIRouter(prefix="/api/dht-light-readings", tags=["dht-light"])
bme_router = APIRouter(prefix="/api/bme-readings", tags=["bme"])

ENDPOINTS = {
    "dhtLightReadings": "/api/dht-light-readings",
    "bmeReadings": "/api/bme-readings",
    "stats": "/api/stats",
    "dailyStats": "/api/dayle-stats",
}


def get_reading_service(request: Request) -> ReadingService:
    return request.app.state.reading_service


def _list(
    service: ReadingService,
    device_class: DeviceClass,
    device_id: Optional[str],
    from_: Optional[str],
    to: Optional[str],
    page: Optional[str],
    limit: Optional[str],
) -> Dict[str, Any]:
    return service.list_readings(
        device_class,
        device_id=device_id,
        raw_from=from_,
        raw_to=to,
        page=page,
        limit=limit,
    )


def _latest(
    service: ReadingService, device_class: DeviceClass, device_id: Optional[str]
) -> Dict[str, Any]:
    try:
        return service.latest(device_class, device_id)
    except ReadingNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@dht_light_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DhtLightReading,
    summary="Store a DHT22 + light reading.",
)
def create_dht_light_reading(
    payload: DhtLightReadingIn,
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return service.ingest_dht_light(payload)


@dht_light_router.get(
    "",
    response_model=DhtLightReadingPage,
    summary="List DHT22 + light readings, newest first.",
)
def list_dht_light_readings(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return _list(service, DeviceClass.dht_light, device_id, from_, to, page, limit)


@dht_light_router.get(
    "/latest",
    response_model=DhtLightReading,
    summary="Most recent DHT22 + light reading, optionally for one device.",
)
def latest_dht_light_reading(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return _latest(service, DeviceClass.dht_light, device_id)


@bme_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BmeReading,
    summary="Store a BME680 reading.",
)
def create_bme_reading(
    payload: BmeReadingIn,
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return service.ingest_bme(payload)


@bme_router.get(
    "",
    response_model=BmeReadingPage,
    summary="List BME680 readings, newest first.",
)
def list_bme_readings(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return _list(service, DeviceClass.bme, device_id, from_, to, page, limit)


@bme_router.get(
    "/latest",
    response_model=BmeReading,
    summary="Most recent BME680 reading, optionally for one device.",
)
def latest_bme_reading(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    service: ReadingService = Depends(get_reading_service),
) -> Dict[str, Any]:
    return _latest(service, DeviceClass.bme, device_id)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Service status and endpoint map.",
    status_code=status.HTTP_200_OK,
)
async def root() -> Dict[str, Any]:
    return {
        "ok": True,
        "message": "ESP32 sensors API running",
        "endpoints": ENDPOINTS,
    }
