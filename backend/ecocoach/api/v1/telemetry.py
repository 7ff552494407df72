from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecocoach.api.deps import get_current_user, get_db
from ecocoach.api.v1.trips import get_owned_trip
from ecocoach.models.telemetry import Telemetry
from ecocoach.models.user import User
from ecocoach.schemas.telemetry import TelemetryBulkRead, TelemetryRead

router = APIRouter()


@router.get("/{trip_id}", response_model=TelemetryBulkRead)
async def get_telemetry(
    trip_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(10000, ge=1, le=100000),
    downsample: int = Query(1, ge=1, description="Return every Nth point"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_owned_trip(db, trip_id, user)

    result = await db.execute(
        select(Telemetry)
        .where(Telemetry.trip_id == trip_id)
        .order_by(Telemetry.time)
    )
    all_rows = result.scalars().all()

    # Apply downsampling
    if downsample > 1:
        rows = all_rows[skip::downsample][:limit]
    else:
        rows = all_rows[skip:skip + limit]

    return TelemetryBulkRead(
        trip_id=trip_id,
        data=[TelemetryRead.model_validate(row) for row in rows],
        count=len(rows),
    )


@router.get("/{trip_id}/gps")
async def get_gps_points(
    trip_id: UUID,
    downsample: int = Query(1, ge=1, description="Return every Nth point"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_owned_trip(db, trip_id, user)

    result = await db.execute(
        select(Telemetry.time, Telemetry.latitude, Telemetry.longitude, Telemetry.speed_kmh)
        .where(Telemetry.trip_id == trip_id)
        .where(Telemetry.latitude.isnot(None))
        .where(Telemetry.longitude.isnot(None))
        .order_by(Telemetry.time)
    )
    all_rows = result.all()
    rows = all_rows[::downsample] if downsample > 1 else all_rows

    return {
        "trip_id": str(trip_id),
        "points": [
            {
                "lat": row.latitude,
                "lng": row.longitude,
                "time": row.time.isoformat(),
                "speed_kmh": row.speed_kmh,
            }
            for row in rows
        ],
        "count": len(rows),
    }
