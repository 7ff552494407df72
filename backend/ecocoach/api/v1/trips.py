import uuid
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecocoach.api.deps import get_coaching_service, get_current_user, get_db
from ecocoach.models.insight import Insight
from ecocoach.models.trip import Trip
from ecocoach.models.user import User
from ecocoach.models.vehicle import Vehicle
from ecocoach.schemas.trip import InsightRead, TripCreate, TripList, TripRead
from ecocoach.services.coaching import CoachingService
from ecocoach.services.types import Route, TelemetrySample, Traffic, TripMetadata, Weather

router = APIRouter()


async def get_owned_vehicle(db: AsyncSession, vehicle_id: Optional[UUID], user: User) -> Optional[Vehicle]:
    if vehicle_id is None:
        return None
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.user_id == user.id)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


async def get_owned_trip(db: AsyncSession, trip_id: UUID, user: User) -> Trip:
    result = await db.execute(select(Trip).where(Trip.id == trip_id, Trip.user_id == user.id))
    trip = result.scalar_one_or_none()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


@router.post("/", response_model=TripRead, status_code=201)
async def create_trip(
    trip_in: TripCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CoachingService = Depends(get_coaching_service),
):
    """Finalize a recorded trip from its telemetry samples."""
    await get_owned_vehicle(db, trip_in.vehicle_id, user)

    metadata = TripMetadata(
        trip_id=uuid.uuid4(),
        user_id=user.id,
        vehicle_id=trip_in.vehicle_id,
        start_time=trip_in.start_time,
        end_time=trip_in.end_time,
        route=Route(type=trip_in.route.type, waypoints=list(trip_in.route.waypoints)),
        weather=Weather(temperature=trip_in.weather.temperature, conditions=trip_in.weather.conditions),
        traffic=Traffic(level=trip_in.traffic.level),
        distance=trip_in.distance_km,
        fuel_consumed=trip_in.fuel_consumed_l,
        name=trip_in.name,
    )
    samples = [TelemetrySample(**sample.model_dump()) for sample in trip_in.samples]

    return await service.finalize_trip(samples, metadata)


@router.get("/", response_model=list[TripList])
async def list_trips(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Trip)
        .where(Trip.user_id == user.id)
        .order_by(Trip.start_time.desc())
        .offset(skip)
        .limit(limit)
    )
    trips = result.scalars().all()
    return trips


@router.get("/{trip_id}", response_model=TripRead)
async def get_trip(
    trip_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_owned_trip(db, trip_id, user)


@router.get("/{trip_id}/insights", response_model=list[InsightRead])
async def get_trip_insights(
    trip_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_owned_trip(db, trip_id, user)
    result = await db.execute(
        select(Insight).where(Insight.trip_id == trip_id).order_by(Insight.created_at)
    )
    return result.scalars().all()


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    trip = await get_owned_trip(db, trip_id, user)

    await db.delete(trip)
    await db.commit()
    return {"status": "deleted", "id": str(trip_id)}
