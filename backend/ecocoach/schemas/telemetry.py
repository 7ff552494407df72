from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TelemetrySampleIn(BaseModel):
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed: Optional[float] = None  # km/h
    engine_rpm: Optional[float] = None
    throttle_position: Optional[float] = None  # %
    brake_pressure: Optional[float] = None  # bar
    steering_angle: Optional[float] = None  # degrees

    @field_validator("timestamp")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TelemetryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: datetime
    trip_id: UUID
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed_kmh: Optional[float] = None
    engine_rpm: Optional[float] = None
    throttle_position_pct: Optional[float] = None
    brake_pressure_bar: Optional[float] = None
    steering_angle_deg: Optional[float] = None


class TelemetryBulkRead(BaseModel):
    trip_id: UUID
    data: list[TelemetryRead]
    count: int
