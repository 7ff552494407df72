from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ecocoach.services.types import FuelType


class VehicleCreate(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    fuel_type: FuelType = FuelType.GASOLINE
    is_primary: bool = False


class VehicleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    fuel_type: str
    is_primary: bool
    created_at: Optional[datetime] = None
