"""Trip aggregation: fold telemetry samples into a TripSummary."""
import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ecocoach.services.errors import InvalidFeatureVector, InvalidTripData
from ecocoach.services.features import extract_efficiency_features
from ecocoach.services.scoring import (
    DEFAULT_SCORING_CONFIG,
    NEUTRAL_EFFICIENCY_SCORE,
    ScoringConfig,
    score_efficiency,
)
from ecocoach.services.types import (
    DrivingBehavior,
    FuelType,
    TelemetrySample,
    TripMetadata,
    TripSummary,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
STANDARD_GRAVITY = 9.80665  # m/s^2


@dataclass(frozen=True)
class AggregatorConfig:
    harsh_acceleration_g: float = 0.35
    harsh_braking_g: float = -0.45
    harsh_brake_pressure_bar: float = 80.0
    cornering_rate_deg_s: float = 30.0
    cornering_min_speed_kmh: float = 20.0
    lane_change_rate_deg_s: float = 10.0
    lane_change_min_speed_kmh: float = 60.0
    speed_limit_kmh: float = 120.0
    idle_speed_kmh: float = 3.0

    base_fuel_rate_l_100km: float = 7.5
    idle_fuel_rate_l_h: float = 0.8


DEFAULT_AGGREGATOR_CONFIG = AggregatorConfig()

CO2_KG_PER_LITRE = {
    FuelType.GASOLINE: 2.31,
    FuelType.DIESEL: 2.68,
    FuelType.HYBRID: 2.31,
    FuelType.ELECTRIC: 0.0,
}


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on earth in km.
    Uses the Haversine formula.
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(a))

    return c * EARTH_RADIUS_KM


def _gps_distance(samples: Sequence[TelemetrySample]) -> float:
    total = 0.0
    prev = None
    for sample in samples:
        if sample.latitude is None or sample.longitude is None:
            continue
        if prev is not None:
            total += haversine_distance(prev.latitude, prev.longitude, sample.latitude, sample.longitude)
        prev = sample
    return total


def _speed_distance(samples: Sequence[TelemetrySample]) -> float:
    """Distance from speed-time integration, used when no GPS fix is available."""
    total = 0.0
    prev_time = None
    for sample in samples:
        if prev_time is not None and sample.speed is not None:
            time_diff_hours = (sample.timestamp - prev_time).total_seconds() / 3600.0
            total += sample.speed * time_diff_hours
        prev_time = sample.timestamp
    return total


def _detect_behavior(samples: Sequence[TelemetrySample], config: AggregatorConfig) -> DrivingBehavior:
    """
    Count harsh events and accumulate idle time.

    Each event is counted once per episode: on the sample where its
    condition becomes true.
    """
    counts = {"accel": 0, "brake": 0, "corner": 0, "lane": 0, "speeding": 0}
    active = {key: False for key in counts}
    idle_time = 0.0

    def update(key: str, condition: bool) -> None:
        if condition and not active[key]:
            counts[key] += 1
        active[key] = condition

    prev = None
    for sample in samples:
        speed = sample.speed
        update("speeding", speed is not None and speed > config.speed_limit_kmh)

        if prev is None:
            update("brake", (sample.brake_pressure or 0.0) >= config.harsh_brake_pressure_bar)
            prev = sample
            continue

        dt = (sample.timestamp - prev.timestamp).total_seconds()
        if dt <= 0:
            # Duplicate timestamp
            continue

        if speed is not None and speed < config.idle_speed_kmh and (sample.engine_rpm or 0) > 0:
            idle_time += dt

        accel_g = None
        if speed is not None and prev.speed is not None:
            accel_g = ((speed - prev.speed) / 3.6) / dt / STANDARD_GRAVITY

        update("accel", accel_g is not None and accel_g > config.harsh_acceleration_g)
        update(
            "brake",
            (accel_g is not None and accel_g < config.harsh_braking_g)
            or (sample.brake_pressure or 0.0) >= config.harsh_brake_pressure_bar,
        )

        steering_rate = None
        if sample.steering_angle is not None and prev.steering_angle is not None:
            steering_rate = abs(sample.steering_angle - prev.steering_angle) / dt

        update(
            "corner",
            steering_rate is not None
            and speed is not None
            and config.cornering_min_speed_kmh <= speed < config.lane_change_min_speed_kmh
            and steering_rate >= config.cornering_rate_deg_s,
        )
        update(
            "lane",
            steering_rate is not None
            and speed is not None
            and speed >= config.lane_change_min_speed_kmh
            and steering_rate >= config.lane_change_rate_deg_s,
        )

        prev = sample

    return DrivingBehavior(
        harsh_accelerations=counts["accel"],
        harsh_braking=counts["brake"],
        harsh_cornering=counts["corner"],
        speeding_events=counts["speeding"],
        rapid_lane_changes=counts["lane"],
        idle_time=idle_time,
    )


def _fuel_and_emissions(
    distance: float, idle_time: float, metadata: TripMetadata, config: AggregatorConfig
) -> Tuple[float, float, float]:
    """Returns: (fuel_consumed_l, fuel_efficiency_l_100km, co2_kg)"""
    fuel_type = metadata.fuel_type or FuelType.GASOLINE

    if metadata.fuel_consumed is not None:
        fuel = metadata.fuel_consumed
    elif fuel_type == FuelType.ELECTRIC:
        fuel = 0.0
    else:
        fuel = distance * config.base_fuel_rate_l_100km / 100 + idle_time / 3600 * config.idle_fuel_rate_l_h

    efficiency = fuel / distance * 100
    co2 = fuel * CO2_KG_PER_LITRE[fuel_type]
    return fuel, efficiency, co2


def eco_score_for(trip: TripSummary, scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> int:
    """Efficiency score for a finalized trip; neutral default on a malformed vector."""
    try:
        return score_efficiency(extract_efficiency_features(trip), scoring_config).score
    except InvalidFeatureVector as exc:
        logger.warning(f"Eco score fell back to default for trip {trip.trip_id}: {exc}")
        return NEUTRAL_EFFICIENCY_SCORE


def aggregate_trip(
    samples: Sequence[TelemetrySample],
    metadata: TripMetadata,
    config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
    scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> TripSummary:
    """
    Fold telemetry samples and trip metadata into a finalized TripSummary.

    Raises InvalidTripData when there are no samples, the trip has no
    positive duration, or it covered no distance. No partial summary is
    produced in those cases.
    """
    if not samples:
        raise InvalidTripData("Trip has no telemetry samples")

    ordered: List[TelemetrySample] = sorted(samples, key=lambda s: s.timestamp)

    start_time = metadata.start_time or ordered[0].timestamp
    end_time = metadata.end_time or ordered[-1].timestamp
    duration = (end_time - start_time).total_seconds()
    if duration <= 0:
        raise InvalidTripData(f"Trip duration must be positive, got {duration:.1f}s")

    if metadata.distance is not None:
        distance = metadata.distance
    else:
        distance = _gps_distance(ordered) or _speed_distance(ordered)
    if distance <= 0:
        raise InvalidTripData("Trip covered no distance")

    speeds = [s.speed for s in ordered if s.speed is not None]
    max_speed = max(speeds) if speeds else 0.0
    average_speed = distance / (duration / 3600)

    behavior = _detect_behavior(ordered, config)
    fuel, efficiency, co2 = _fuel_and_emissions(distance, behavior.idle_time, metadata, config)

    summary = TripSummary(
        trip_id=metadata.trip_id,
        user_id=metadata.user_id,
        vehicle_id=metadata.vehicle_id,
        start_time=start_time,
        end_time=end_time,
        distance=distance,
        duration=duration,
        average_speed=average_speed,
        max_speed=max_speed,
        fuel_consumed=fuel,
        fuel_efficiency=efficiency,
        co2_emissions=co2,
        route=metadata.route,
        weather=metadata.weather,
        traffic=metadata.traffic,
        driving_behavior=behavior,
        name=metadata.name,
    )

    # A missing feature input (e.g. no temperature) propagates to the caller
    summary.eco_score = eco_score_for(summary, scoring_config)

    logger.info(
        f"Aggregated trip {metadata.trip_id}: {len(ordered)} samples, "
        f"{distance:.2f} km, eco score {summary.eco_score}"
    )
    return summary
