"""Feature extraction: TripSummary -> normalized feature vectors."""
from typing import Any

from ecocoach.services.errors import MissingFeatureInput
from ecocoach.services.types import FeatureVector, RouteType, TrafficLevel, TripSummary

# Normalization divisors; typical values land in [0, 1], outliers may exceed 1
DISTANCE_DIVISOR = 100.0  # km
DURATION_DIVISOR = 3600.0  # seconds -> hours
AVERAGE_SPEED_DIVISOR = 100.0  # km/h
MAX_SPEED_DIVISOR = 150.0  # km/h
EVENT_COUNT_DIVISOR = 10.0
IDLE_TIME_DIVISOR = 600.0  # 10 minutes
TEMPERATURE_DIVISOR = 50.0  # deg C

EFFICIENCY_VECTOR_LENGTH = 10
BEHAVIOR_VECTOR_LENGTH = 8
ROUTE_VECTOR_LENGTH = 6

RAINY_CONDITIONS = "rainy"


def _require(value: Any, field: str) -> Any:
    if value is None:
        raise MissingFeatureInput(field)
    return value


def _indicator(condition: bool) -> float:
    return 1.0 if condition else 0.0


def extract_efficiency_features(trip: TripSummary) -> FeatureVector:
    behavior = _require(trip.driving_behavior, "driving_behavior")
    route = _require(trip.route, "route")
    weather = _require(trip.weather, "weather")
    route_type = _require(route.type, "route.type")

    return (
        _require(trip.distance, "distance") / DISTANCE_DIVISOR,
        _require(trip.duration, "duration") / DURATION_DIVISOR,
        _require(trip.average_speed, "average_speed") / AVERAGE_SPEED_DIVISOR,
        _require(trip.max_speed, "max_speed") / MAX_SPEED_DIVISOR,
        behavior.harsh_accelerations / EVENT_COUNT_DIVISOR,
        behavior.harsh_braking / EVENT_COUNT_DIVISOR,
        behavior.idle_time / IDLE_TIME_DIVISOR,
        _indicator(route_type == RouteType.CITY),
        _indicator(route_type == RouteType.HIGHWAY),
        _require(weather.temperature, "weather.temperature") / TEMPERATURE_DIVISOR,
    )


def extract_behavior_features(trip: TripSummary) -> FeatureVector:
    behavior = _require(trip.driving_behavior, "driving_behavior")

    return (
        behavior.harsh_accelerations / EVENT_COUNT_DIVISOR,
        behavior.harsh_braking / EVENT_COUNT_DIVISOR,
        behavior.harsh_cornering / EVENT_COUNT_DIVISOR,
        behavior.speeding_events / EVENT_COUNT_DIVISOR,
        behavior.idle_time / IDLE_TIME_DIVISOR,
        behavior.rapid_lane_changes / EVENT_COUNT_DIVISOR,
        _require(trip.average_speed, "average_speed") / AVERAGE_SPEED_DIVISOR,
        _require(trip.max_speed, "max_speed") / MAX_SPEED_DIVISOR,
    )


def extract_route_features(trip: TripSummary) -> FeatureVector:
    route = _require(trip.route, "route")
    traffic = _require(trip.traffic, "traffic")
    weather = _require(trip.weather, "weather")
    level = _require(traffic.level, "traffic.level")

    return (
        _require(trip.distance, "distance") / DISTANCE_DIVISOR,
        _require(trip.duration, "duration") / DURATION_DIVISOR,
        _indicator(level == TrafficLevel.HEAVY),
        _indicator(level == TrafficLevel.CONGESTED),
        _indicator(route.type == RouteType.CITY),
        _indicator((weather.conditions or "").lower() == RAINY_CONDITIONS),
    )
