"""Async persistence for trip summaries, telemetry and insights."""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ecocoach.models.insight import Insight as InsightRow
from ecocoach.models.telemetry import Telemetry
from ecocoach.models.trip import Trip
from ecocoach.models.user import User
from ecocoach.models.vehicle import Vehicle
from ecocoach.services.types import (
    DrivingBehavior,
    FuelType,
    Impact,
    Insight,
    Route,
    RouteType,
    TelemetrySample,
    Traffic,
    TrafficLevel,
    TripSummary,
    VehicleProfile,
    Weather,
)

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def trip_to_summary(trip: Trip, insights: Optional[Sequence[InsightRow]] = None) -> TripSummary:
    """Map a trips row (and optionally its insight rows) onto a TripSummary."""
    route = Route(type=RouteType(trip.route_type), waypoints=[tuple(p) for p in trip.waypoints or []]) \
        if trip.route_type else None
    traffic = Traffic(level=TrafficLevel(trip.traffic_level)) if trip.traffic_level else None

    return TripSummary(
        trip_id=trip.id,
        user_id=trip.user_id,
        vehicle_id=trip.vehicle_id,
        start_time=as_utc(trip.start_time),
        end_time=as_utc(trip.end_time),
        distance=trip.distance_km,
        duration=trip.duration_seconds,
        average_speed=trip.avg_speed_kmh,
        max_speed=trip.max_speed_kmh,
        fuel_consumed=trip.fuel_consumed_l,
        fuel_efficiency=trip.fuel_efficiency_l_100km,
        co2_emissions=trip.co2_emissions_kg,
        eco_score=trip.eco_score,
        route=route,
        weather=Weather(temperature=trip.weather_temperature_c, conditions=trip.weather_conditions),
        traffic=traffic,
        driving_behavior=DrivingBehavior(
            harsh_accelerations=trip.harsh_accelerations or 0,
            harsh_braking=trip.harsh_braking or 0,
            harsh_cornering=trip.harsh_cornering or 0,
            speeding_events=trip.speeding_events or 0,
            rapid_lane_changes=trip.rapid_lane_changes or 0,
            idle_time=trip.idle_time_seconds or 0.0,
        ),
        insights=[
            Insight(
                type=row.type,
                message=row.message,
                impact=Impact(row.impact),
                fuel_savings=row.fuel_savings,
                co2_savings=row.co2_savings,
                timestamp=as_utc(row.created_at),
            )
            for row in insights or []
        ],
        name=trip.name,
    )


def summary_to_trip(summary: TripSummary) -> Trip:
    behavior = summary.driving_behavior or DrivingBehavior()
    return Trip(
        id=summary.trip_id,
        user_id=summary.user_id,
        vehicle_id=summary.vehicle_id,
        name=summary.name,
        start_time=summary.start_time,
        end_time=summary.end_time,
        duration_seconds=summary.duration,
        distance_km=summary.distance,
        avg_speed_kmh=summary.average_speed,
        max_speed_kmh=summary.max_speed,
        fuel_consumed_l=summary.fuel_consumed,
        fuel_efficiency_l_100km=summary.fuel_efficiency,
        co2_emissions_kg=summary.co2_emissions,
        eco_score=summary.eco_score,
        route_type=summary.route.type.value if summary.route else None,
        waypoints=[list(p) for p in summary.route.waypoints] if summary.route else None,
        weather_temperature_c=summary.weather.temperature if summary.weather else None,
        weather_conditions=summary.weather.conditions if summary.weather else None,
        traffic_level=summary.traffic.level.value if summary.traffic else None,
        harsh_accelerations=behavior.harsh_accelerations,
        harsh_braking=behavior.harsh_braking,
        harsh_cornering=behavior.harsh_cornering,
        speeding_events=behavior.speeding_events,
        rapid_lane_changes=behavior.rapid_lane_changes,
        idle_time_seconds=behavior.idle_time,
    )


def sample_to_row(trip_id: uuid.UUID, sample: TelemetrySample) -> Telemetry:
    return Telemetry(
        time=sample.timestamp,
        trip_id=trip_id,
        latitude=sample.latitude,
        longitude=sample.longitude,
        speed_kmh=sample.speed,
        engine_rpm=sample.engine_rpm,
        throttle_position_pct=sample.throttle_position,
        brake_pressure_bar=sample.brake_pressure,
        steering_angle_deg=sample.steering_angle,
    )


class TripStore:
    """Trip store and vehicle lookup backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_trip(self, trip_id: uuid.UUID) -> Optional[TripSummary]:
        result = await self.db.execute(
            select(Trip)
            .options(selectinload(Trip.insights))
            .where(Trip.id == trip_id)
            .execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if not trip:
            return None
        return trip_to_summary(trip, trip.insights)

    async def find_recent_trips(
        self, user_id: uuid.UUID, since: datetime, limit: int
    ) -> List[TripSummary]:
        """A user's trips started at or after `since`, newest first."""
        return await self.trips_since(user_id, since=since, limit=limit)

    async def trips_since(
        self, user_id: uuid.UUID, since: Optional[datetime] = None, limit: Optional[int] = None
    ) -> List[TripSummary]:
        query = (
            select(Trip)
            .options(selectinload(Trip.insights))
            .where(Trip.user_id == user_id)
            .order_by(Trip.start_time.desc())
            .execution_options(populate_existing=True)
        )
        if since is not None:
            query = query.where(Trip.start_time >= since)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [trip_to_summary(trip, trip.insights) for trip in result.scalars().all()]

    async def save_trip(
        self,
        summary: TripSummary,
        samples: Sequence[TelemetrySample],
        source_filename: Optional[str] = None,
    ) -> Trip:
        """Persist a finalized summary together with its telemetry samples."""
        trip = summary_to_trip(summary)
        trip.source_filename = source_filename

        # (time, trip_id) is the telemetry key; the last sample wins on duplicates
        by_time = {sample.timestamp: sample for sample in samples}
        trip.sample_count = len(by_time)

        self.db.add(trip)
        self.db.add_all(sample_to_row(summary.trip_id, sample) for sample in by_time.values())
        await self.db.commit()
        await self.db.refresh(trip)

        logger.info(f"Saved trip {trip.id} with {trip.sample_count} samples")
        return trip

    async def save_insights(self, trip_id: uuid.UUID, insights: Sequence[Insight]) -> bool:
        """Append insights to a trip. Returns False when the trip does not exist."""
        result = await self.db.execute(select(Trip.id).where(Trip.id == trip_id))
        if result.scalar_one_or_none() is None:
            return False

        self.db.add_all(
            InsightRow(
                id=uuid.uuid4(),
                trip_id=trip_id,
                type=insight.type,
                message=insight.message,
                impact=insight.impact.value,
                fuel_savings=insight.fuel_savings,
                co2_savings=insight.co2_savings,
                created_at=insight.timestamp,
            )
            for insight in sorted(insights, key=lambda i: i.timestamp)
        )
        await self.db.commit()
        return True

    async def get_vehicle(self, vehicle_id: Optional[uuid.UUID]) -> Optional[VehicleProfile]:
        if vehicle_id is None:
            return None
        result = await self.db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
        vehicle = result.scalar_one_or_none()
        return vehicle_to_profile(vehicle) if vehicle else None

    async def get_primary_vehicle(self, user_id: uuid.UUID) -> Optional[VehicleProfile]:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.user_id == user_id, Vehicle.is_primary.is_(True))
        )
        vehicle = result.scalars().first()
        return vehicle_to_profile(vehicle) if vehicle else None

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def update_user_preferences(self, user: User, updates: dict) -> dict:
        # Reassign so the JSON column change is detected
        user.preferences = {**(user.preferences or {}), **updates}
        await self.db.commit()
        await self.db.refresh(user)
        return user.preferences


def vehicle_to_profile(vehicle: Vehicle) -> VehicleProfile:
    try:
        fuel_type = FuelType(vehicle.fuel_type)
    except ValueError:
        fuel_type = FuelType.GASOLINE
    return VehicleProfile(
        vehicle_id=vehicle.id,
        make=vehicle.make,
        model=vehicle.model,
        year=vehicle.year,
        fuel_type=fuel_type,
    )
