from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ecocoach.api.deps import get_current_user, get_db
from ecocoach.models.user import User
from ecocoach.models.vehicle import Vehicle
from ecocoach.schemas.vehicle import VehicleCreate, VehicleRead

router = APIRouter()


@router.post("/", response_model=VehicleRead, status_code=201)
async def create_vehicle(
    vehicle_in: VehicleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # Only one primary vehicle per user
    if vehicle_in.is_primary:
        await db.execute(
            update(Vehicle).where(Vehicle.user_id == user.id).values(is_primary=False)
        )

    vehicle = Vehicle(
        user_id=user.id,
        make=vehicle_in.make,
        model=vehicle_in.model,
        year=vehicle_in.year,
        fuel_type=vehicle_in.fuel_type.value,
        is_primary=vehicle_in.is_primary,
    )
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


@router.get("/", response_model=list[VehicleRead])
async def list_vehicles(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Vehicle).where(Vehicle.user_id == user.id).order_by(Vehicle.created_at)
    )
    return result.scalars().all()


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(
    vehicle_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.user_id == user.id)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle
