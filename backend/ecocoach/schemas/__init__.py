from ecocoach.schemas.trip import TripCreate, TripRead, TripList, InsightRead
from ecocoach.schemas.telemetry import TelemetrySampleIn, TelemetryRead, TelemetryBulkRead
from ecocoach.schemas.user import UserCreate, UserRead
from ecocoach.schemas.vehicle import VehicleCreate, VehicleRead
from ecocoach.schemas.coaching import AnalyzeTripRequest, GoalsIn

__all__ = [
    "TripCreate",
    "TripRead",
    "TripList",
    "InsightRead",
    "TelemetrySampleIn",
    "TelemetryRead",
    "TelemetryBulkRead",
    "UserCreate",
    "UserRead",
    "VehicleCreate",
    "VehicleRead",
    "AnalyzeTripRequest",
    "GoalsIn",
]
