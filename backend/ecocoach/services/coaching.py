"""
Coaching service: runs the analysis pipeline for a trip and serves the
user-level coaching views (recommendations, insights, tips, goals).
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from ecocoach.config import Settings, settings as default_settings
from ecocoach.models.trip import Trip
from ecocoach.services import cache
from ecocoach.services.aggregator import AggregatorConfig, aggregate_trip
from ecocoach.services.errors import InvalidFeatureVector, TripNotFound, UserNotFound
from ecocoach.services.features import (
    extract_behavior_features,
    extract_efficiency_features,
    extract_route_features,
)
from ecocoach.services.recommendations import build_window, generate_recommendations, to_insights
from ecocoach.services.scoring import (
    DEFAULT_SCORING_CONFIG,
    NEUTRAL_BEHAVIOR_CATEGORY,
    NEUTRAL_CONFIDENCE,
    NEUTRAL_EFFICIENCY_SCORE,
    NEUTRAL_ROUTE_SCORE,
    BehaviorResult,
    EfficiencyResult,
    RouteResult,
    ScoringConfig,
    classify_behavior,
    score_efficiency,
    score_route,
)
from ecocoach.services.trends import calculate_trend
from ecocoach.services.trip_store import TripStore
from ecocoach.services.types import (
    FeatureVector,
    Insight,
    Recommendation,
    TelemetrySample,
    TripMetadata,
    TripSummary,
)

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"week": 7, "month": 30, "quarter": 90, "year": 365}
DEFAULT_PERIOD = "month"
USER_RECOMMENDATION_TRIPS = 20

TIPS = {
    "acceleration": [
        "Gradually press the accelerator pedal instead of flooring it",
        "Anticipate traffic flow to avoid sudden stops and starts",
        "Use cruise control on highways when traffic conditions allow",
        "Accelerate smoothly from stops and maintain steady speeds",
    ],
    "braking": [
        "Brake gently and early to avoid harsh stops",
        "Look ahead and anticipate traffic to reduce sudden braking",
        "Use engine braking when going downhill",
        "Maintain safe following distance to avoid emergency braking",
    ],
    "speed": [
        "Maintain steady speeds within posted limits",
        "Use cruise control on highways for consistent speed",
        "Avoid rapid speed changes and aggressive acceleration",
        "Drive at optimal speeds for your vehicle (usually 50-80 km/h)",
    ],
    "idling": [
        "Turn off your engine when parked for more than 30 seconds",
        "Avoid warming up your engine for extended periods",
        "Use remote start sparingly and only when necessary",
        "Plan your routes to minimize waiting time",
    ],
    "route": [
        "Plan your route to avoid heavy traffic and construction",
        "Use navigation apps to find the most efficient routes",
        "Combine multiple errands into one trip",
        "Consider alternative routes during peak traffic hours",
    ],
    "general": [
        "Keep your vehicle well-maintained for optimal efficiency",
        "Remove unnecessary weight from your vehicle",
        "Use air conditioning efficiently",
        "Check tire pressure regularly for better fuel economy",
    ],
}

VEHICLE_SPECIFIC_TIPS = {
    "gasoline": ["Use the manufacturer-recommended octane; premium fuel rarely improves economy"],
    "diesel": ["Keep the particulate filter healthy with a regular longer highway drive"],
    "hybrid": ["Watch the energy monitor and keep the car in electric mode at low speeds"],
    "electric": ["Charge to 80% for daily driving and use eco mode to extend range"],
}

T = TypeVar("T")


@dataclass
class TripAnalysis:
    efficiency: EfficiencyResult
    behavior: BehaviorResult
    route: RouteResult
    recommendations: List[Recommendation]
    insights: List[Insight] = field(default_factory=list)
    eco_score: Optional[int] = None
    degraded: bool = False

    def to_dict(self) -> dict:
        return {
            "efficiency": self.efficiency.to_dict(),
            "behavior": self.behavior.to_dict(),
            "route": self.route.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _period_start(period: str, now: datetime) -> datetime:
    return now - timedelta(days=PERIOD_DAYS.get(period, PERIOD_DAYS[DEFAULT_PERIOD]))


def _trip_ref(trip: TripSummary) -> dict:
    return {
        "id": str(trip.trip_id),
        "name": trip.name,
        "start_time": trip.start_time.isoformat(),
        "eco_score": trip.eco_score,
    }


def _total(trips: Sequence[TripSummary], getter: Callable[[TripSummary], Optional[float]]) -> float:
    return sum(getter(trip) or 0 for trip in trips)


class CoachingService:
    """Coaching pipeline over a TripStore."""

    def __init__(
        self,
        store: TripStore,
        scoring_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        aggregator_config: Optional[AggregatorConfig] = None,
        settings: Settings = default_settings,
    ):
        self.store = store
        self.scoring_config = scoring_config
        self.settings = settings
        self.aggregator_config = aggregator_config or AggregatorConfig(speed_limit_kmh=settings.speed_limit_kmh)

    def _score(self, name: str, scorer: Callable[..., T], vector: FeatureVector, fallback: T) -> Tuple[T, bool]:
        """Run a scorer, falling back to a neutral result on a malformed vector."""
        try:
            return scorer(vector, self.scoring_config), False
        except InvalidFeatureVector as e:
            logger.warning(f"{name} scoring fell back to default: {e}")
            return fallback, True

    async def finalize_trip(
        self,
        samples: Sequence[TelemetrySample],
        metadata: TripMetadata,
        source_filename: Optional[str] = None,
    ) -> Trip:
        """Aggregate a recorded trip and persist it with its samples."""
        if metadata.fuel_type is None and metadata.vehicle_id is not None:
            vehicle = await self.store.get_vehicle(metadata.vehicle_id)
            if vehicle is not None:
                metadata.fuel_type = vehicle.fuel_type

        summary = aggregate_trip(samples, metadata, self.aggregator_config, self.scoring_config)
        trip = await self.store.save_trip(summary, samples, source_filename=source_filename)
        await self._invalidate_user_cache(metadata.user_id)
        return trip

    async def analyze_trip(
        self, trip_id: uuid.UUID, user_id: uuid.UUID, now: Optional[datetime] = None
    ) -> TripAnalysis:
        """
        Analyze a finalized trip and append the resulting insights to it.

        Structural problems (unknown trip, missing feature inputs) propagate;
        a scorer that rejects its vector degrades to a neutral result.
        """
        now = now or _utcnow()

        trip = await self.store.get_trip(trip_id)
        if trip is None or trip.user_id != user_id:
            raise TripNotFound(f"Trip {trip_id} not found")

        efficiency_vector = extract_efficiency_features(trip)
        behavior_vector = extract_behavior_features(trip)
        route_vector = extract_route_features(trip)

        efficiency, eff_fallback = self._score(
            "Efficiency", score_efficiency, efficiency_vector, EfficiencyResult(score=NEUTRAL_EFFICIENCY_SCORE)
        )
        behavior, beh_fallback = self._score(
            "Behavior",
            classify_behavior,
            behavior_vector,
            BehaviorResult(category=NEUTRAL_BEHAVIOR_CATEGORY, confidence=NEUTRAL_CONFIDENCE),
        )
        route, route_fallback = self._score(
            "Route", score_route, route_vector, RouteResult(score=NEUTRAL_ROUTE_SCORE)
        )

        since = now - timedelta(days=self.settings.recent_trips_days)
        recent = await self.store.find_recent_trips(user_id, since, self.settings.recent_trips_limit)
        window = build_window(trip, recent, limit=self.settings.recent_trips_limit)

        vehicle = await self.store.get_vehicle(trip.vehicle_id)
        recommendations = generate_recommendations(window, vehicle)

        # Insights are append-only; a re-analysis only records types the trip does not hold yet
        recorded = {insight.type for insight in trip.insights}
        insights = to_insights([rec for rec in recommendations if rec.type not in recorded], now)
        if insights:
            saved = await self.store.save_insights(trip_id, insights)
            if saved:
                trip.add_insights(insights)
            else:
                logger.error(f"Failed to save insights for trip {trip_id}")

        await self._invalidate_user_cache(user_id)

        logger.info(
            f"Analyzed trip {trip_id}: efficiency {efficiency.score}, behavior {behavior.category.value}, "
            f"route {route.score}, {len(recommendations)} recommendation(s)"
        )
        return TripAnalysis(
            efficiency=efficiency,
            behavior=behavior,
            route=route,
            recommendations=recommendations,
            insights=trip.insights,
            eco_score=trip.eco_score,
            degraded=eff_fallback or beh_fallback or route_fallback,
        )

    async def user_recommendations(self, user_id: uuid.UUID, limit: int = 10) -> dict:
        trips = await self.store.trips_since(user_id, limit=USER_RECOMMENDATION_TRIPS)
        if not trips:
            return {
                "recommendations": [],
                "summary": {
                    "total_trips": 0,
                    "average_eco_score": 0,
                    "total_fuel_consumed": 0,
                    "total_co2_emissions": 0,
                },
            }

        vehicle = await self.store.get_primary_vehicle(user_id)
        recommendations = generate_recommendations(trips, vehicle)

        return {
            "recommendations": [r.to_dict() for r in recommendations[:limit]],
            "summary": {
                "total_trips": len(trips),
                "average_eco_score": round(_total(trips, lambda t: t.eco_score) / len(trips)),
                "total_fuel_consumed": round(_total(trips, lambda t: t.fuel_consumed), 2),
                "total_co2_emissions": round(_total(trips, lambda t: t.co2_emissions), 2),
            },
        }

    async def user_insights(
        self, user_id: uuid.UUID, period: str = DEFAULT_PERIOD, now: Optional[datetime] = None
    ) -> dict:
        now = now or _utcnow()
        if period not in PERIOD_DAYS:
            period = DEFAULT_PERIOD

        cache_key = cache.insights_cache_key(user_id, period)
        cached = await cache.get_cached_data(cache_key)
        if cached is not None:
            return cached

        trips = await self.store.trips_since(user_id, since=_period_start(period, now))
        if not trips:
            return {"insights": {}, "period": period, "trip_count": 0}

        scored = [t for t in trips if t.eco_score is not None]
        chronological = list(reversed(trips))

        insights = {
            "efficiency": {
                "average_eco_score": (
                    _total(scored, lambda t: t.eco_score) / len(scored) if scored else None
                ),
                "best_trip": _trip_ref(max(scored, key=lambda t: t.eco_score)) if scored else None,
                "worst_trip": _trip_ref(min(scored, key=lambda t: t.eco_score)) if scored else None,
            },
            "behavior": {
                "total_harsh_accelerations": _total(
                    trips, lambda t: t.driving_behavior.harsh_accelerations if t.driving_behavior else 0
                ),
                "total_harsh_braking": _total(
                    trips, lambda t: t.driving_behavior.harsh_braking if t.driving_behavior else 0
                ),
                "total_idle_time": _total(
                    trips, lambda t: t.driving_behavior.idle_time if t.driving_behavior else 0
                ),
                "average_speed": _total(trips, lambda t: t.average_speed) / len(trips),
            },
            "environmental": {
                "total_co2_emissions": _total(trips, lambda t: t.co2_emissions),
                "total_fuel_consumed": _total(trips, lambda t: t.fuel_consumed),
                "total_distance": _total(trips, lambda t: t.distance),
            },
            "trends": {
                "eco_score_trend": calculate_trend(
                    [t.eco_score for t in chronological if t.eco_score is not None]
                ).value,
                # L/100 km: lower is better
                "fuel_efficiency_trend": calculate_trend(
                    [t.fuel_efficiency for t in chronological if t.fuel_efficiency is not None],
                    higher_is_better=False,
                ).value,
                "distance_trend": calculate_trend(
                    [t.distance for t in chronological if t.distance is not None]
                ).value,
            },
        }

        result = {"insights": insights, "period": period, "trip_count": len(trips)}
        await cache.cache_data(cache_key, result, ttl=self.settings.cache_ttl_seconds)
        return result

    async def tips(self, category: Optional[str], user_id: uuid.UUID) -> dict:
        vehicle = await self.store.get_primary_vehicle(user_id)

        tips: Dict[str, List[str]] = {name: list(items) for name, items in TIPS.items()}
        if vehicle is not None:
            tips["vehicle_specific"] = list(VEHICLE_SPECIFIC_TIPS.get(vehicle.fuel_type.value, []))

        selected = (tips.get(category) or tips["general"]) if category else tips
        return {
            "tips": selected,
            "category": category or "all",
            "personalized": vehicle is not None,
        }

    async def set_goals(self, user_id: uuid.UUID, goals: dict, now: Optional[datetime] = None) -> dict:
        now = now or _utcnow()
        user = await self.store.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found")

        stored = {
            "eco_score_target": goals.get("eco_score_target"),
            "fuel_savings_target": goals.get("fuel_savings_target"),
            "co2_reduction_target": goals.get("co2_reduction_target"),
            "timeframe": goals.get("timeframe") or DEFAULT_PERIOD,
            "created_at": now.isoformat(),
        }
        preferences = await self.store.update_user_preferences(user, {"goals": stored})
        return preferences["goals"]

    async def goal_progress(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> dict:
        """
        Progress towards the user's goals over the goal timeframe.
        Savings are the sum of the fuel/CO2 savings recorded as trip insights.
        """
        now = now or _utcnow()
        user = await self.store.get_user(user_id)
        goals = (user.preferences or {}).get("goals") if user else None
        if not goals:
            return {"progress": None, "goals": None}

        timeframe = goals.get("timeframe") or DEFAULT_PERIOD
        trips = await self.store.trips_since(user_id, since=_period_start(timeframe, now))

        scored = [t.eco_score for t in trips if t.eco_score is not None]
        current_eco = sum(scored) / len(scored) if scored else 0
        fuel_saved = sum(i.fuel_savings for t in trips for i in t.insights)
        co2_saved = sum(i.co2_savings for t in trips for i in t.insights)

        def entry(current: float, target: Optional[float], digits: int) -> dict:
            return {
                "current": round(current, digits) if digits else round(current),
                "target": target,
                "percentage": round(current / target * 100) if target else 0,
            }

        return {
            "progress": {
                "eco_score": entry(current_eco, goals.get("eco_score_target"), 0),
                "fuel_savings": entry(fuel_saved, goals.get("fuel_savings_target"), 2),
                "co2_reduction": entry(co2_saved, goals.get("co2_reduction_target"), 2),
            },
            "goals": goals,
            "timeframe": timeframe,
            "trip_count": len(trips),
        }

    async def _invalidate_user_cache(self, user_id: uuid.UUID) -> None:
        await cache.delete_cached_data(*(cache.insights_cache_key(user_id, p) for p in PERIOD_DAYS))
