"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from services.classification import RangeStatus

# Strict numbers: no numeric strings, booleans, NaN or infinities.
Number = Annotated[float, Field(strict=True, allow_inf_nan=False)]

DeviceId = Annotated[
    str,
    StringConstraints(strict=True, strip_whitespace=True, to_lower=True, min_length=1),
]

LightLevel = Literal[
    "muy oscuro",
    "oscuro",
    "poco iluminado",
    "bien iluminado",
    "muy iluminado",
]


class ApiModel(BaseModel):
    """Base for envelopes whose wire names are camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class DhtLightSensorsIn(BaseModel):
    """Sensor block posted by a DHT22 + light node."""

    temp_dht_c: Number
    humidity_pct: Annotated[Number, Field(ge=0, le=100)]
    light_lux: Annotated[Number, Field(ge=0)]


class BmeSensorsIn(BaseModel):
    """Sensor block posted by a BME680 node."""

    temp_bme_c: Number
    humidity_bme_pct: Annotated[Number, Field(ge=0, le=100)]
    pressure_hpa: Annotated[Number, Field(ge=300, le=1100)]
    gas_resistance_ohms: Annotated[Number, Field(ge=0)]


class DhtLightReadingIn(ApiModel):
    device_id: DeviceId = Field(..., alias="deviceId")
    sensors: DhtLightSensorsIn


class BmeReadingIn(ApiModel):
    device_id: DeviceId = Field(..., alias="deviceId")
    sensors: BmeSensorsIn


class DhtLightSensors(BaseModel):
    temp_dht_c: float
    humidity_pct: float
    light_lux: float
    light_state: Optional[Literal[0, 1]] = None
    light_level: LightLevel


class BmeSensors(BaseModel):
    temp_bme_c: float
    humidity_bme_pct: float
    pressure_hpa: float
    gas_resistance_ohms: float


class ReadingOut(ApiModel):
    """A stored reading as returned by the API."""

    id: str = Field(..., validation_alias="_id")
    device_id: str = Field(..., alias="deviceId")
    created_at: datetime = Field(..., alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


class DhtLightReading(ReadingOut):
    sensors: DhtLightSensors


class BmeReading(ReadingOut):
    sensors: BmeSensors


class PageMeta(ApiModel):
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0, alias="totalPages")


class DhtLightReadingPage(BaseModel):
    data: List[DhtLightReading]
    meta: PageMeta


class BmeReadingPage(BaseModel):
    data: List[BmeReading]
    meta: PageMeta


class MetricStats(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None


class ClassifiedMetricStats(MetricStats):
    status: RangeStatus


class DhtLightDailySummary(BaseModel):
    date: str
    count: int
    temperature: ClassifiedMetricStats
    humidity: ClassifiedMetricStats
    light: ClassifiedMetricStats


class BmeDailySummary(BaseModel):
    date: str
    count: int
    temperature: ClassifiedMetricStats
    humidity: ClassifiedMetricStats
    pressure: MetricStats


class DhtLightDailyResponse(BaseModel):
    ok: bool = True
    data: List[DhtLightDailySummary]


class BmeDailyResponse(BaseModel):
    ok: bool = True
    data: List[BmeDailySummary]


class DateRange(ApiModel):
    """Window that was queried; ``to`` is exclusive."""

    from_: datetime = Field(..., alias="from")
    to: datetime


class DailyStatsResponse(ApiModel):
    range: DateRange
    bme: List[BmeDailySummary]
    dht_light: List[DhtLightDailySummary] = Field(..., alias="dhtLight")


class TemperatureHumidityCompliance(ApiModel):
    total: int = Field(..., ge=0)
    temp_ok_pct: float = Field(..., alias="tempOkPct")
    hum_ok_pct: float = Field(..., alias="humOkPct")
    both_ok_pct: float = Field(..., alias="bothOkPct")


class LightCompliance(ApiModel):
    total: int = Field(..., ge=0)
    light_ok_pct: float = Field(..., alias="lightOkPct")


class ComplianceResponse(ApiModel):
    range: DateRange
    temperature_humidity: TemperatureHumidityCompliance = Field(
        ..., alias="temperatureHumidity"
    )
    light: LightCompliance


class MetricValue(BaseModel):
    value: Optional[float] = None
    unit: str


class ClassifiedMetricValue(MetricValue):
    status: RangeStatus
    ok: bool


class DerivedMetrics(BaseModel):
    temperature: ClassifiedMetricValue
    humidity: ClassifiedMetricValue
    light: ClassifiedMetricValue
    pressure: MetricValue


class LatestSources(ApiModel):
    bme_latest: Optional[BmeReading] = Field(default=None, alias="bmeLatest")
    dht_latest: Optional[DhtLightReading] = Field(default=None, alias="dhtLatest")


class CurrentStatsResponse(BaseModel):
    sources: LatestSources
    derived: DerivedMetrics
