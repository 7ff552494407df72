import uuid
from datetime import datetime, timedelta, timezone

import pytest

from factories import trip_payload

RECENT = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=2)

# Five pull-aways from a standstill, each followed by a hard stop
JERKY_SPEEDS = [0.0, 20.0, 20.0, 0.0] * 5
SMOOTH_SPEEDS = [30.0 + i * 0.5 for i in range(60)]


@pytest.fixture
async def jerky_trip(client, auth_headers):
    response = await client.post("/api/v1/trips/", json=trip_payload(JERKY_SPEEDS, RECENT), headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAnalyzeTrip:
    async def test_analysis(self, client, auth_headers, jerky_trip):
        assert jerky_trip["harsh_accelerations"] == 5

        response = await client.post(
            "/api/v1/coaching/analyze-trip", json={"trip_id": jerky_trip["id"]}, headers=auth_headers
        )
        assert response.status_code == 200, response.text
        body = response.json()

        assert body["degraded"] is False
        assert set(body["analysis"]) == {"efficiency", "behavior", "route", "recommendations"}
        assert 0 <= body["analysis"]["efficiency"]["score"] <= 100
        assert body["analysis"]["behavior"]["type"] == "aggressive"
        assert body["analysis"]["route"]["alternatives"] == []

        recommendations = body["analysis"]["recommendations"]
        assert recommendations[0]["type"] == "acceleration"
        assert recommendations[0]["priority"] == "high"

        assert body["trip"]["id"] == jerky_trip["id"]
        assert body["trip"]["eco_score"] == jerky_trip["eco_score"]
        assert body["trip"]["insights"][0]["type"] == "acceleration"
        assert body["trip"]["insights"][0]["impact"] == "positive"

    async def test_insights_are_persisted(self, client, auth_headers, jerky_trip):
        await client.post("/api/v1/coaching/analyze-trip", json={"trip_id": jerky_trip["id"]}, headers=auth_headers)

        response = await client.get(f"/api/v1/trips/{jerky_trip['id']}/insights", headers=auth_headers)

        assert response.status_code == 200
        insights = response.json()
        assert [i["type"] for i in insights] == ["acceleration"]
        assert insights[0]["fuel_savings"] == pytest.approx(0.5)

    async def test_unknown_trip(self, client, auth_headers):
        response = await client.post(
            "/api/v1/coaching/analyze-trip", json={"trip_id": str(uuid.uuid4())}, headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Trip not found"}

    async def test_other_users_trip(self, client, jerky_trip, other_user):
        response = await client.post(
            "/api/v1/coaching/analyze-trip",
            json={"trip_id": jerky_trip["id"]},
            headers={"X-User-Id": str(other_user.id)},
        )
        assert response.status_code == 404

    async def test_invalid_trip_id(self, client, auth_headers):
        response = await client.post(
            "/api/v1/coaching/analyze-trip", json={"trip_id": "not-a-uuid"}, headers=auth_headers
        )
        assert response.status_code == 422


class TestRecommendations:
    async def test_recommendations(self, client, auth_headers, jerky_trip):
        response = await client.get("/api/v1/coaching/recommendations", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert [r["type"] for r in body["recommendations"]] == ["acceleration"]
        assert body["summary"]["total_trips"] == 1

    async def test_no_trips(self, client, auth_headers):
        response = await client.get("/api/v1/coaching/recommendations", headers=auth_headers)
        assert response.json()["recommendations"] == []


class TestInsights:
    async def test_insights(self, client, auth_headers, jerky_trip):
        response = await client.get("/api/v1/coaching/insights", params={"period": "week"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == "week"
        assert body["trip_count"] == 1
        assert body["insights"]["behavior"]["total_harsh_accelerations"] == 5
        assert body["insights"]["trends"]["eco_score_trend"] == "stable"

    async def test_invalid_period(self, client, auth_headers):
        response = await client.get("/api/v1/coaching/insights", params={"period": "decade"}, headers=auth_headers)
        assert response.status_code == 422


class TestTips:
    async def test_category(self, client, auth_headers):
        response = await client.get("/api/v1/coaching/tips", params={"category": "idling"}, headers=auth_headers)

        body = response.json()
        assert body["category"] == "idling"
        assert len(body["tips"]) == 4
        assert body["personalized"] is False

    async def test_personalized_with_primary_vehicle(self, client, auth_headers, hybrid_vehicle):
        response = await client.get("/api/v1/coaching/tips", headers=auth_headers)

        body = response.json()
        assert body["personalized"] is True
        assert "vehicle_specific" in body["tips"]


class TestGoals:
    async def test_set_goals_and_progress(self, client, auth_headers):
        response = await client.post(
            "/api/v1/coaching/goals",
            json={"eco_score_target": 90, "fuel_savings_target": 5, "timeframe": "week"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["goals"]["timeframe"] == "week"

        trip = await client.post("/api/v1/trips/", json=trip_payload(SMOOTH_SPEEDS, RECENT), headers=auth_headers)
        eco_score = trip.json()["eco_score"]

        response = await client.get("/api/v1/coaching/progress", headers=auth_headers)

        body = response.json()
        assert body["timeframe"] == "week"
        assert body["trip_count"] == 1
        assert body["progress"]["eco_score"]["current"] == eco_score
        assert body["progress"]["eco_score"]["target"] == 90
        assert body["progress"]["fuel_savings"]["current"] == 0

    @pytest.mark.parametrize("goals", [
        {"eco_score_target": 150},
        {"fuel_savings_target": -1},
        {"timeframe": "decade"},
    ])
    async def test_invalid_goals(self, client, auth_headers, goals):
        response = await client.post("/api/v1/coaching/goals", json=goals, headers=auth_headers)
        assert response.status_code == 422

    async def test_progress_without_goals(self, client, auth_headers):
        response = await client.get("/api/v1/coaching/progress", headers=auth_headers)
        assert response.json() == {"progress": None, "goals": None}
