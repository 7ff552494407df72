"""
Rule-based scoring of trip feature vectors.

Three independent scorers turn the vectors produced by
ecocoach.services.features into bounded 0-100 scores (efficiency, route) or a
behavior category with a confidence value. All weights and thresholds are held
in a read-only ScoringConfig built once at import time.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from ecocoach.services.errors import InvalidFeatureVector
from ecocoach.services.features import (
    AVERAGE_SPEED_DIVISOR,
    BEHAVIOR_VECTOR_LENGTH,
    DISTANCE_DIVISOR,
    EFFICIENCY_VECTOR_LENGTH,
    EVENT_COUNT_DIVISOR,
    IDLE_TIME_DIVISOR,
    MAX_SPEED_DIVISOR,
    ROUTE_VECTOR_LENGTH,
)


class BehaviorCategory(str, Enum):
    ECO_FRIENDLY = "eco_friendly"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    VERY_AGGRESSIVE = "very_aggressive"


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and thresholds for all scorers."""

    # Efficiency penalties, in points per unit of normalized feature
    harsh_acceleration_penalty: float = 25.0
    harsh_braking_penalty: float = 25.0
    idle_penalty: float = 20.0
    high_speed_penalty: float = 60.0
    high_speed_reference_kmh: float = 100.0

    # Behavior classification
    behavior_weights: Tuple[float, ...] = (1.0, 1.0, 0.75, 1.0, 0.75)  # accel, brake, corner, speeding, lane
    behavior_boundaries: Tuple[float, ...] = (0.3, 0.8, 1.5)
    confidence_scale: float = 0.3

    # Route penalties
    heavy_traffic_penalty: float = 25.0
    congested_traffic_penalty: float = 40.0
    long_city_distance_norm: float = 0.2  # 20 km
    long_city_penalty_rate: float = 50.0
    long_city_penalty_cap: float = 25.0
    rainy_penalty: float = 10.0

    # Thresholds for human-readable factors (raw units)
    factor_harsh_accelerations: int = 5
    factor_harsh_braking: int = 3
    factor_high_speed_kmh: float = 120.0
    factor_idle_seconds: float = 300.0
    factor_city_slow_kmh: float = 30.0
    factor_long_city_km: float = 20.0

    max_improvement_pct: float = 30.0


DEFAULT_SCORING_CONFIG = ScoringConfig()

NEUTRAL_EFFICIENCY_SCORE = 0
NEUTRAL_ROUTE_SCORE = 50
NEUTRAL_BEHAVIOR_CATEGORY = BehaviorCategory.MODERATE
NEUTRAL_CONFIDENCE = 0.5

_CATEGORY_ORDER = (
    BehaviorCategory.ECO_FRIENDLY,
    BehaviorCategory.MODERATE,
    BehaviorCategory.AGGRESSIVE,
    BehaviorCategory.VERY_AGGRESSIVE,
)


@dataclass
class EfficiencyResult:
    score: int
    factors: List[str] = field(default_factory=list)
    improvement: float = 0.0

    def to_dict(self) -> dict:
        return {"score": self.score, "factors": list(self.factors), "improvement": round(self.improvement, 2)}


@dataclass
class BehaviorResult:
    category: BehaviorCategory
    confidence: float
    details: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.category.value,
            "confidence": round(self.confidence, 3),
            "details": dict(self.details),
        }


@dataclass
class RouteResult:
    score: int
    factors: List[str] = field(default_factory=list)
    optimizations: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "efficiency": self.score,
            "factors": list(self.factors),
            "optimization": [dict(o) for o in self.optimizations],
            "alternatives": [],
        }


def _validate(vector: Sequence[float], expected_length: int, name: str) -> Tuple[float, ...]:
    if vector is None or len(vector) != expected_length:
        length = None if vector is None else len(vector)
        raise InvalidFeatureVector(f"{name} vector must have {expected_length} values, got {length}")
    try:
        values = tuple(float(v) for v in vector)
    except (TypeError, ValueError) as exc:
        raise InvalidFeatureVector(f"{name} vector contains non-numeric values") from exc
    if not all(math.isfinite(v) for v in values):
        raise InvalidFeatureVector(f"{name} vector contains non-finite values")
    return values


def _clamp_score(value: float) -> int:
    return int(round(min(100.0, max(0.0, value))))


def score_efficiency(
    vector: Sequence[float], config: ScoringConfig = DEFAULT_SCORING_CONFIG
) -> EfficiencyResult:
    """
    Score fuel efficiency (0-100) from the 10-dim efficiency vector.
    Non-increasing in harsh accelerations, harsh braking, idle time and max speed.
    """
    v = _validate(vector, EFFICIENCY_VECTOR_LENGTH, "efficiency")
    avg_speed_n, max_speed_n, accel_n, brake_n, idle_n, is_city = v[2], v[3], v[4], v[5], v[6], v[7]

    speed_reference_n = config.high_speed_reference_kmh / MAX_SPEED_DIVISOR
    penalty = (
        config.harsh_acceleration_penalty * accel_n
        + config.harsh_braking_penalty * brake_n
        + config.idle_penalty * idle_n
        + config.high_speed_penalty * max(0.0, max_speed_n - speed_reference_n)
    )

    # Raw units for factors and improvement estimate
    harsh_accelerations = accel_n * EVENT_COUNT_DIVISOR
    harsh_braking = brake_n * EVENT_COUNT_DIVISOR
    idle_seconds = idle_n * IDLE_TIME_DIVISOR
    max_speed = max_speed_n * MAX_SPEED_DIVISOR
    average_speed = avg_speed_n * AVERAGE_SPEED_DIVISOR

    factors = []
    if harsh_accelerations > config.factor_harsh_accelerations:
        factors.append("High harsh acceleration count")
    if harsh_braking > config.factor_harsh_braking:
        factors.append("Frequent harsh braking")
    if max_speed > config.factor_high_speed_kmh:
        factors.append("High speed driving")
    if idle_seconds > config.factor_idle_seconds:
        factors.append("Excessive idling")
    if is_city >= 1.0 and average_speed < config.factor_city_slow_kmh:
        factors.append("Heavy city traffic")

    improvement = harsh_accelerations * 0.15 + harsh_braking * 0.12
    if max_speed > config.high_speed_reference_kmh:
        improvement += (max_speed - config.high_speed_reference_kmh) * 0.01
    improvement += idle_seconds / 60 * 0.1
    improvement = min(max(improvement, 0.0), config.max_improvement_pct)

    return EfficiencyResult(score=_clamp_score(100.0 - penalty), factors=factors, improvement=improvement)


def classify_behavior(
    vector: Sequence[float], config: ScoringConfig = DEFAULT_SCORING_CONFIG
) -> BehaviorResult:
    """
    Classify driving behavior from the 8-dim behavior vector.

    A weighted sum of the normalized harsh-event counts is compared against
    the category boundaries; a sum exactly on a boundary falls into the more
    aggressive category. Confidence grows with the distance to the nearest
    boundary and lies in [0.5, 1].
    """
    v = _validate(vector, BEHAVIOR_VECTOR_LENGTH, "behavior")
    harsh_counts = (v[0], v[1], v[2], v[3], v[5])
    weighted = sum(w * c for w, c in zip(config.behavior_weights, harsh_counts))

    index = sum(1 for boundary in config.behavior_boundaries if weighted >= boundary)
    category = _CATEGORY_ORDER[index]

    margin = min(abs(weighted - boundary) for boundary in config.behavior_boundaries)
    confidence = 0.5 + 0.5 * min(1.0, margin / config.confidence_scale)

    details = {
        "accelerationPattern": (
            "aggressive" if v[0] * EVENT_COUNT_DIVISOR > config.factor_harsh_accelerations else "smooth"
        ),
        "brakingPattern": "harsh" if v[1] * EVENT_COUNT_DIVISOR > config.factor_harsh_braking else "smooth",
        "speedPattern": "high_speed" if v[7] * MAX_SPEED_DIVISOR > config.factor_high_speed_kmh else "moderate",
        "idlingPattern": "excessive" if v[4] * IDLE_TIME_DIVISOR > config.factor_idle_seconds else "minimal",
    }

    return BehaviorResult(category=category, confidence=confidence, details=details)


def score_route(vector: Sequence[float], config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> RouteResult:
    """Score route efficiency (0-100) from the 6-dim route vector."""
    v = _validate(vector, ROUTE_VECTOR_LENGTH, "route")
    distance_n, heavy, congested, is_city, rainy = v[0], v[2], v[3], v[4], v[5]

    long_city = min(
        config.long_city_penalty_cap,
        config.long_city_penalty_rate * is_city * max(0.0, distance_n - config.long_city_distance_norm),
    )
    penalty = (
        config.heavy_traffic_penalty * heavy
        + config.congested_traffic_penalty * congested
        + long_city
        + config.rainy_penalty * rainy
    )

    factors = []
    optimizations = []
    if heavy >= 1.0:
        factors.append("Heavy traffic")
    if congested >= 1.0:
        factors.append("Congested traffic")
    if heavy >= 1.0 or congested >= 1.0:
        optimizations.append({
            "type": "traffic_avoidance",
            "description": "Consider alternative routes to avoid heavy traffic",
            "potential_savings": {"fuel": 0.15, "time": 0.2},
        })
    if is_city >= 1.0 and distance_n * DISTANCE_DIVISOR > config.factor_long_city_km:
        factors.append("Long distance on city roads")
        optimizations.append({
            "type": "route_optimization",
            "description": "Highway routes may be more efficient for longer distances",
            "potential_savings": {"fuel": 0.1, "time": 0.15},
        })
    if rainy >= 1.0:
        factors.append("Rainy conditions")

    return RouteResult(score=_clamp_score(100.0 - penalty), factors=factors, optimizations=optimizations)
