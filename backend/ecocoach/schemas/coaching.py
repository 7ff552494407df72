from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AnalyzeTripRequest(BaseModel):
    trip_id: UUID


class GoalsIn(BaseModel):
    eco_score_target: Optional[float] = Field(None, ge=0, le=100)
    fuel_savings_target: Optional[float] = Field(None, ge=0)  # litres
    co2_reduction_target: Optional[float] = Field(None, ge=0)  # kg
    timeframe: Literal["week", "month", "quarter", "year"] = "month"
