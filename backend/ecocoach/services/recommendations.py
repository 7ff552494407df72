"""
Rule-based coaching recommendations.

Averages a user's recent-trip window and emits one recommendation per
breached threshold, always in the order acceleration, speed, idling.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from ecocoach.services.types import (
    FuelType,
    Impact,
    Insight,
    Priority,
    Recommendation,
    TripSummary,
    VehicleProfile,
)

HARSH_ACCELERATION_THRESHOLD = 3.0
MAX_SPEED_THRESHOLD_KMH = 100.0
IDLE_TIME_THRESHOLD_S = 180.0  # 3 minutes

FUEL_PER_HARSH_ACCELERATION = 0.1  # litres
CO2_PER_HARSH_ACCELERATION = 0.25  # kg
BASE_SPEED_FUEL_SAVINGS = 0.2
FUEL_PER_KMH_OVER = 0.01
CO2_PER_LITRE_SAVED = 2.5
FUEL_PER_IDLE_MINUTE = 0.1
CO2_PER_IDLE_MINUTE = 0.25

DEFAULT_WINDOW_LIMIT = 10

ACCELERATION_TIPS = [
    "Gradually press the accelerator pedal",
    "Anticipate traffic flow to avoid sudden stops",
    "Use cruise control on highways when possible",
]
SPEED_TIPS = [
    "Stay within speed limits",
    "Use cruise control on highways",
    "Avoid rapid speed changes",
]
IDLING_TIPS = [
    "Turn off engine at long traffic lights",
    "Avoid warming up engine for extended periods",
    "Use remote start sparingly",
]

VEHICLE_TIPS: Dict[FuelType, Dict[str, List[str]]] = {
    FuelType.HYBRID: {
        "acceleration": ["Pull away gently so the electric motor can handle low-speed starts"],
        "speed": ["Keep speeds moderate to stay in the most efficient hybrid mode"],
        "idling": ["Let the start-stop system shut the engine off while waiting"],
    },
    FuelType.ELECTRIC: {
        "acceleration": ["Use regenerative braking and smooth acceleration to extend range"],
        "speed": ["Range drops quickly above 100 km/h; ease off on long highway stretches"],
        "idling": ["Precondition the cabin while plugged in instead of while parked"],
    },
    FuelType.DIESEL: {
        "acceleration": ["Shift up early and use the engine's low-end torque"],
        "speed": ["Hold a steady cruising speed in the highest gear"],
        "idling": ["Modern diesels need no extended warm-up; drive off gently instead"],
    },
}


def _average(trips: Sequence[TripSummary], getter) -> float:
    return sum(getter(trip) or 0 for trip in trips) / len(trips)


def _tips_for(kind: str, base: List[str], vehicle: Optional[VehicleProfile]) -> List[str]:
    tips = list(base)
    if vehicle is not None:
        tips.extend(VEHICLE_TIPS.get(vehicle.fuel_type, {}).get(kind, []))
    return tips


def generate_recommendations(
    recent_trips: Sequence[TripSummary], vehicle: Optional[VehicleProfile] = None
) -> List[Recommendation]:
    """
    Build recommendations from a recent-trip window.

    Returns an empty list for an empty window. Without a vehicle profile
    only the generic tips are included.
    """
    if not recent_trips:
        return []

    recommendations = []

    avg_harsh_accelerations = _average(
        recent_trips, lambda t: t.driving_behavior.harsh_accelerations if t.driving_behavior else 0
    )
    if avg_harsh_accelerations > HARSH_ACCELERATION_THRESHOLD:
        recommendations.append(Recommendation(
            type="acceleration",
            priority=Priority.HIGH,
            title="Smooth Acceleration",
            description="Reduce harsh accelerations to improve fuel efficiency by up to 15%",
            tips=_tips_for("acceleration", ACCELERATION_TIPS, vehicle),
            potential_savings={
                "fuel": avg_harsh_accelerations * FUEL_PER_HARSH_ACCELERATION,
                "co2": avg_harsh_accelerations * CO2_PER_HARSH_ACCELERATION,
            },
        ))

    avg_max_speed = _average(recent_trips, lambda t: t.max_speed)
    if avg_max_speed > MAX_SPEED_THRESHOLD_KMH:
        fuel = BASE_SPEED_FUEL_SAVINGS + (avg_max_speed - MAX_SPEED_THRESHOLD_KMH) * FUEL_PER_KMH_OVER
        recommendations.append(Recommendation(
            type="speed",
            priority=Priority.MEDIUM,
            title="Speed Management",
            description="Maintaining optimal speeds can significantly improve fuel efficiency",
            tips=_tips_for("speed", SPEED_TIPS, vehicle),
            potential_savings={"fuel": fuel, "co2": fuel * CO2_PER_LITRE_SAVED},
        ))

    avg_idle_time = _average(recent_trips, lambda t: t.driving_behavior.idle_time if t.driving_behavior else 0)
    if avg_idle_time > IDLE_TIME_THRESHOLD_S:
        minutes_over = (avg_idle_time - IDLE_TIME_THRESHOLD_S) / 60
        recommendations.append(Recommendation(
            type="idling",
            priority=Priority.MEDIUM,
            title="Reduce Idle Time",
            description="Turn off your engine when parked to save fuel and reduce emissions",
            tips=_tips_for("idling", IDLING_TIPS, vehicle),
            potential_savings={
                "fuel": minutes_over * FUEL_PER_IDLE_MINUTE,
                "co2": minutes_over * CO2_PER_IDLE_MINUTE,
            },
        ))

    return recommendations


def build_window(
    current: TripSummary, recent: Sequence[TripSummary], limit: int = DEFAULT_WINDOW_LIMIT
) -> List[TripSummary]:
    """
    Merge the analyzed trip into the store's window, newest first.
    The analyzed trip is always kept, even when it is older than the rest.
    """
    others = sorted(
        (trip for trip in recent if trip.trip_id != current.trip_id),
        key=lambda t: t.start_time,
        reverse=True,
    )
    window = [current] + others[:max(limit - 1, 0)]
    return sorted(window, key=lambda t: t.start_time, reverse=True)


def to_insights(recommendations: Sequence[Recommendation], now: datetime) -> List[Insight]:
    """One insight per recommendation; timestamps step by a microsecond to keep the batch order."""
    return [
        to_insight(rec, now + timedelta(microseconds=i))
        for i, rec in enumerate(recommendations)
    ]


def to_insight(recommendation: Recommendation, now: datetime) -> Insight:
    fuel = recommendation.potential_savings.get("fuel", 0.0)
    return Insight(
        type=recommendation.type,
        message=recommendation.description,
        impact=Impact.POSITIVE if fuel > 0 else Impact.NEGATIVE,
        fuel_savings=fuel,
        co2_savings=recommendation.potential_savings.get("co2", 0.0),
        timestamp=now,
    )
