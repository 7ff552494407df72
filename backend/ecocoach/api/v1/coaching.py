from typing import Optional

from fastapi import APIRouter, Depends, Query

from ecocoach.api.deps import get_coaching_service, get_current_user
from ecocoach.models.user import User
from ecocoach.schemas.coaching import AnalyzeTripRequest, GoalsIn
from ecocoach.services.coaching import CoachingService

router = APIRouter()


@router.post("/analyze-trip")
async def analyze_trip(
    request: AnalyzeTripRequest,
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    analysis = await service.analyze_trip(request.trip_id, user.id)

    if analysis.degraded:
        message = "Trip analysis completed with default scores for some categories"
    else:
        message = "Trip analysis completed successfully"

    return {
        "message": message,
        "degraded": analysis.degraded,
        "analysis": analysis.to_dict(),
        "trip": {
            "id": str(request.trip_id),
            "eco_score": analysis.eco_score,
            "insights": [insight.to_dict() for insight in analysis.insights],
        },
    }


@router.get("/recommendations")
async def get_recommendations(
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    return await service.user_recommendations(user.id, limit=limit)


@router.get("/insights")
async def get_insights(
    period: str = Query("month", pattern="^(week|month|quarter|year)$"),
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    return await service.user_insights(user.id, period=period)


@router.get("/tips")
async def get_tips(
    category: Optional[str] = None,
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    return await service.tips(category, user.id)


@router.post("/goals")
async def set_goals(
    goals: GoalsIn,
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    stored = await service.set_goals(user.id, goals.model_dump())
    return {"message": "Goals set successfully", "goals": stored}


@router.get("/progress")
async def get_progress(
    user: User = Depends(get_current_user),
    service: CoachingService = Depends(get_coaching_service),
):
    return await service.goal_progress(user.id)
