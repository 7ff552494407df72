import pytest

from ecocoach.services.errors import MissingFeatureInput
from ecocoach.services.features import (
    BEHAVIOR_VECTOR_LENGTH,
    EFFICIENCY_VECTOR_LENGTH,
    ROUTE_VECTOR_LENGTH,
    extract_behavior_features,
    extract_efficiency_features,
    extract_route_features,
)
from ecocoach.services.types import RouteType, TrafficLevel

from factories import make_summary


class TestEfficiencyFeatures:
    def test_normalized_values(self):
        vector = extract_efficiency_features(make_summary())

        assert len(vector) == EFFICIENCY_VECTOR_LENGTH
        assert vector == pytest.approx((0.2, 0.5, 0.4, 80 / 150, 0.2, 0.1, 0.2, 1.0, 0.0, 0.5))

    def test_highway_indicator(self):
        vector = extract_efficiency_features(make_summary(route_type=RouteType.HIGHWAY))
        assert vector[7] == 0.0
        assert vector[8] == 1.0

    def test_outliers_are_not_clamped(self):
        vector = extract_efficiency_features(make_summary(harsh_accelerations=25, max_speed=180.0))
        assert vector[4] == pytest.approx(2.5)
        assert vector[3] == pytest.approx(1.2)

    def test_missing_temperature(self):
        with pytest.raises(MissingFeatureInput) as exc_info:
            extract_efficiency_features(make_summary(temperature=None))
        assert exc_info.value.field == "weather.temperature"

    def test_missing_distance(self):
        trip = make_summary()
        trip.distance = None
        with pytest.raises(MissingFeatureInput):
            extract_efficiency_features(trip)


class TestBehaviorFeatures:
    def test_normalized_values(self):
        trip = make_summary(harsh_cornering=3, speeding_events=4, rapid_lane_changes=1)
        vector = extract_behavior_features(trip)

        assert len(vector) == BEHAVIOR_VECTOR_LENGTH
        assert vector == pytest.approx((0.2, 0.1, 0.3, 0.4, 0.2, 0.1, 0.4, 80 / 150))

    def test_missing_behavior(self):
        trip = make_summary()
        trip.driving_behavior = None
        with pytest.raises(MissingFeatureInput) as exc_info:
            extract_behavior_features(trip)
        assert exc_info.value.field == "driving_behavior"


class TestRouteFeatures:
    def test_normalized_values(self):
        vector = extract_route_features(make_summary(traffic_level=TrafficLevel.HEAVY))

        assert len(vector) == ROUTE_VECTOR_LENGTH
        assert vector == pytest.approx((0.2, 0.5, 1.0, 0.0, 1.0, 0.0))

    def test_congested_traffic(self):
        vector = extract_route_features(make_summary(traffic_level=TrafficLevel.CONGESTED))
        assert vector[2:4] == (0.0, 1.0)

    @pytest.mark.parametrize("conditions", ["rainy", "Rainy", "RAINY"])
    def test_rain_indicator(self, conditions):
        assert extract_route_features(make_summary(conditions=conditions))[5] == 1.0

    def test_missing_conditions_are_not_rainy(self):
        assert extract_route_features(make_summary(conditions=None))[5] == 0.0

    def test_missing_traffic(self):
        trip = make_summary()
        trip.traffic = None
        with pytest.raises(MissingFeatureInput):
            extract_route_features(trip)
