from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecocoach.schemas.telemetry import TelemetrySampleIn, ensure_utc
from ecocoach.services.types import RouteType, TrafficLevel


class RouteIn(BaseModel):
    type: RouteType = RouteType.MIXED
    waypoints: list[tuple[float, float]] = []


class WeatherIn(BaseModel):
    temperature: float  # deg C
    conditions: Optional[str] = None


class TrafficIn(BaseModel):
    level: TrafficLevel = TrafficLevel.MODERATE


class TripCreate(BaseModel):
    name: Optional[str] = None
    vehicle_id: Optional[UUID] = None
    samples: list[TelemetrySampleIn] = Field(..., min_length=1)
    route: RouteIn = RouteIn()
    weather: WeatherIn
    traffic: TrafficIn = TrafficIn()

    # Recorded values that override the ones derived from samples
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    distance_km: Optional[float] = Field(None, gt=0)
    fuel_consumed_l: Optional[float] = Field(None, ge=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class InsightRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    message: str
    impact: str
    fuel_savings: float
    co2_savings: float
    created_at: datetime


class TripRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    vehicle_id: Optional[UUID] = None
    name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_seconds: float
    distance_km: float
    avg_speed_kmh: Optional[float] = None
    max_speed_kmh: Optional[float] = None
    fuel_consumed_l: Optional[float] = None
    fuel_efficiency_l_100km: Optional[float] = None
    co2_emissions_kg: Optional[float] = None
    eco_score: Optional[int] = None

    route_type: Optional[str] = None
    weather_temperature_c: Optional[float] = None
    weather_conditions: Optional[str] = None
    traffic_level: Optional[str] = None

    harsh_accelerations: int
    harsh_braking: int
    harsh_cornering: int
    speeding_events: int
    rapid_lane_changes: int
    idle_time_seconds: float

    source_filename: Optional[str] = None
    sample_count: Optional[int] = None
    created_at: Optional[datetime] = None


class TripList(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: Optional[str] = None
    start_time: datetime
    duration_seconds: float
    distance_km: float
    avg_speed_kmh: Optional[float] = None
    max_speed_kmh: Optional[float] = None
    eco_score: Optional[int] = None
    sample_count: Optional[int] = None
