"""Value types shared by the coaching pipeline."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

FeatureVector = Tuple[float, ...]


class RouteType(str, Enum):
    CITY = "city"
    HIGHWAY = "highway"
    MIXED = "mixed"
    RURAL = "rural"


class TrafficLevel(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    CONGESTED = "congested"


class FuelType(str, Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    HYBRID = "hybrid"
    ELECTRIC = "electric"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class TelemetrySample:
    """A single timestamped reading of vehicle dynamics."""

    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    speed: Optional[float] = None  # km/h
    engine_rpm: Optional[float] = None
    throttle_position: Optional[float] = None  # %
    brake_pressure: Optional[float] = None  # bar
    steering_angle: Optional[float] = None  # degrees


@dataclass
class DrivingBehavior:
    harsh_accelerations: int = 0
    harsh_braking: int = 0
    harsh_cornering: int = 0
    speeding_events: int = 0
    rapid_lane_changes: int = 0
    idle_time: float = 0.0  # seconds

    def __post_init__(self):
        for name in (
            "harsh_accelerations",
            "harsh_braking",
            "harsh_cornering",
            "speeding_events",
            "rapid_lane_changes",
            "idle_time",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> dict:
        return {
            "harsh_accelerations": self.harsh_accelerations,
            "harsh_braking": self.harsh_braking,
            "harsh_cornering": self.harsh_cornering,
            "speeding_events": self.speeding_events,
            "rapid_lane_changes": self.rapid_lane_changes,
            "idle_time": self.idle_time,
        }


@dataclass
class Route:
    type: RouteType = RouteType.MIXED
    waypoints: List[Tuple[float, float]] = field(default_factory=list)


@dataclass
class Weather:
    temperature: Optional[float] = None  # deg C
    conditions: Optional[str] = None


@dataclass
class Traffic:
    level: TrafficLevel = TrafficLevel.MODERATE


@dataclass
class Insight:
    type: str
    message: str
    impact: Impact
    fuel_savings: float
    co2_savings: float
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "impact": self.impact.value,
            "fuel_savings": self.fuel_savings,
            "co2_savings": self.co2_savings,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Recommendation:
    type: str
    priority: Priority
    title: str
    description: str
    tips: List[str]
    potential_savings: Dict[str, float]

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "tips": list(self.tips),
            "potential_savings": dict(self.potential_savings),
        }


@dataclass(frozen=True)
class VehicleProfile:
    vehicle_id: uuid.UUID
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    fuel_type: FuelType = FuelType.GASOLINE


@dataclass
class TripMetadata:
    """Trip boundary data supplied by the collecting client."""

    trip_id: uuid.UUID
    user_id: uuid.UUID
    vehicle_id: Optional[uuid.UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    route: Route = field(default_factory=Route)
    weather: Weather = field(default_factory=Weather)
    traffic: Traffic = field(default_factory=Traffic)
    distance: Optional[float] = None  # km, overrides GPS integration
    fuel_consumed: Optional[float] = None  # litres
    fuel_type: Optional[FuelType] = None
    name: Optional[str] = None


@dataclass
class TripSummary:
    """
    Finalized trip aggregate.

    After finalization the only permitted mutation is appending insights.
    Fields may be None on summaries loaded from storage.
    """

    trip_id: uuid.UUID
    user_id: uuid.UUID
    vehicle_id: Optional[uuid.UUID]
    start_time: datetime
    end_time: datetime
    distance: Optional[float]  # km
    duration: Optional[float]  # seconds
    average_speed: Optional[float]  # km/h
    max_speed: Optional[float]  # km/h
    fuel_consumed: Optional[float] = None  # litres
    fuel_efficiency: Optional[float] = None  # L/100 km
    co2_emissions: Optional[float] = None  # kg
    eco_score: Optional[int] = None
    route: Optional[Route] = None
    weather: Optional[Weather] = None
    traffic: Optional[Traffic] = None
    driving_behavior: Optional[DrivingBehavior] = None
    insights: List[Insight] = field(default_factory=list)
    name: Optional[str] = None

    def add_insights(self, insights: List[Insight]) -> None:
        self.insights.extend(sorted(insights, key=lambda i: i.timestamp))
