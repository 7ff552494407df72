import uuid
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ecocoach.api.deps import get_coaching_service, get_current_user, get_db
from ecocoach.api.v1.trips import get_owned_vehicle
from ecocoach.models.user import User
from ecocoach.schemas.trip import TripRead
from ecocoach.services.coaching import CoachingService
from ecocoach.services.csv_parser import parse_samples
from ecocoach.services.types import Route, RouteType, Traffic, TrafficLevel, TripMetadata, Weather

router = APIRouter()


@router.post("/", response_model=TripRead, status_code=201)
async def upload_csv(
    file: UploadFile = File(...),
    temperature: float = Form(..., description="Outside temperature in deg C"),
    name: Optional[str] = Form(None),
    vehicle_id: Optional[UUID] = Form(None),
    route_type: RouteType = Form(RouteType.MIXED),
    traffic_level: TrafficLevel = Form(TrafficLevel.MODERATE),
    conditions: Optional[str] = Form(None),
    distance_km: Optional[float] = Form(None, gt=0),
    fuel_consumed_l: Optional[float] = Form(None, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CoachingService = Depends(get_coaching_service),
):
    if not file.filename or not file.filename.endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be a CSV")

    await get_owned_vehicle(db, vehicle_id, user)

    content = await file.read()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    samples = parse_samples(text)

    metadata = TripMetadata(
        trip_id=uuid.uuid4(),
        user_id=user.id,
        vehicle_id=vehicle_id,
        route=Route(type=route_type),
        weather=Weather(temperature=temperature, conditions=conditions),
        traffic=Traffic(level=traffic_level),
        distance=distance_km,
        fuel_consumed=fuel_consumed_l,
        name=name or file.filename.rsplit(".", 1)[0],
    )
    return await service.finalize_trip(samples, metadata, source_filename=file.filename)
