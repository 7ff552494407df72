import uuid
from datetime import datetime, timedelta, timezone

from factories import trip_payload

RECENT = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=2)
SPEEDS = [0.0, 20.0, 40.0] + [50.0] * 57

SAMPLE_CSV = b"""# StartTime = 03/02/2026 08:00:00.0000 AM
Time (sec),Vehicle speed (km/h),Engine RPM (rpm),Latitude,Longitude
0,30,1500,52.5200,13.4050
1,32,1500,52.5201,13.4053
2,34,1500,52.5202,13.4056
3,35,1500,52.5203,13.4059
"""


async def create_trip(client, headers, speeds=SPEEDS, **extra):
    response = await client.post("/api/v1/trips/", json=trip_payload(speeds, RECENT, **extra), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["cache"] == "disabled"


class TestUsers:
    async def test_create_user(self, client):
        response = await client.post("/api/v1/users/", json={"email": "new@example.com", "display_name": "New"})
        assert response.status_code == 201
        assert response.json()["email"] == "new@example.com"

    async def test_duplicate_email(self, client, user):
        response = await client.post("/api/v1/users/", json={"email": user.email})
        assert response.status_code == 409

    async def test_me(self, client, auth_headers, user):
        response = await client.get("/api/v1/users/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["id"] == str(user.id)

    async def test_missing_header(self, client):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 422

    async def test_unknown_user(self, client):
        response = await client.get("/api/v1/users/me", headers={"X-User-Id": str(uuid.uuid4())})
        assert response.status_code == 401


class TestVehicles:
    async def test_create_and_list(self, client, auth_headers):
        response = await client.post(
            "/api/v1/vehicles/",
            json={"make": "Toyota", "model": "Prius", "year": 2022, "fuel_type": "hybrid", "is_primary": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        vehicle = response.json()
        assert vehicle["fuel_type"] == "hybrid"

        response = await client.get(f"/api/v1/vehicles/{vehicle['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/api/v1/vehicles/", headers=auth_headers)
        assert [v["id"] for v in response.json()] == [vehicle["id"]]

    async def test_single_primary_vehicle(self, client, auth_headers):
        first = await client.post("/api/v1/vehicles/", json={"is_primary": True}, headers=auth_headers)
        second = await client.post(
            "/api/v1/vehicles/", json={"fuel_type": "diesel", "is_primary": True}, headers=auth_headers
        )

        response = await client.get(f"/api/v1/vehicles/{first.json()['id']}", headers=auth_headers)
        assert response.json()["is_primary"] is False
        assert second.json()["is_primary"] is True

    async def test_invalid_fuel_type(self, client, auth_headers):
        response = await client.post("/api/v1/vehicles/", json={"fuel_type": "steam"}, headers=auth_headers)
        assert response.status_code == 422

    async def test_other_users_vehicle(self, client, auth_headers, other_user):
        response = await client.post(
            "/api/v1/vehicles/", json={}, headers={"X-User-Id": str(other_user.id)}
        )
        response = await client.get(f"/api/v1/vehicles/{response.json()['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestCreateTrip:
    async def test_finalizes_trip(self, client, auth_headers, user):
        trip = await create_trip(client, auth_headers)

        assert trip["user_id"] == str(user.id)
        assert trip["name"] == "Commute"
        assert trip["sample_count"] == 60
        assert trip["harsh_accelerations"] == 1
        assert trip["duration_seconds"] == 59.0
        assert trip["route_type"] == "city"
        assert 0 <= trip["eco_score"] <= 100
        assert trip["co2_emissions_kg"] > 0

    async def test_with_vehicle(self, client, auth_headers):
        vehicle = await client.post("/api/v1/vehicles/", json={"fuel_type": "electric"}, headers=auth_headers)
        trip = await create_trip(client, auth_headers, vehicle_id=vehicle.json()["id"])

        assert trip["vehicle_id"] == vehicle.json()["id"]
        assert trip["co2_emissions_kg"] == 0.0

    async def test_unknown_vehicle(self, client, auth_headers):
        payload = trip_payload(SPEEDS, RECENT, vehicle_id=str(uuid.uuid4()))
        response = await client.post("/api/v1/trips/", json=payload, headers=auth_headers)
        assert response.status_code == 404

    async def test_zero_duration_rejected(self, client, auth_headers):
        payload = trip_payload([50.0], RECENT)
        response = await client.post("/api/v1/trips/", json=payload, headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["detail"] == "Trip data is incomplete or inconsistent and cannot be processed"

    async def test_temperature_required(self, client, auth_headers):
        payload = trip_payload(SPEEDS, RECENT)
        del payload["weather"]
        response = await client.post("/api/v1/trips/", json=payload, headers=auth_headers)
        assert response.status_code == 422

    async def test_no_samples(self, client, auth_headers):
        payload = trip_payload([], RECENT)
        response = await client.post("/api/v1/trips/", json=payload, headers=auth_headers)
        assert response.status_code == 422


class TestReadTrips:
    async def test_list_only_own_trips(self, client, auth_headers, other_user):
        mine = await create_trip(client, auth_headers)
        await create_trip(client, {"X-User-Id": str(other_user.id)})

        response = await client.get("/api/v1/trips/", headers=auth_headers)

        assert [t["id"] for t in response.json()] == [mine["id"]]

    async def test_get_trip(self, client, auth_headers):
        trip = await create_trip(client, auth_headers)
        response = await client.get(f"/api/v1/trips/{trip['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["id"] == trip["id"]

    async def test_get_other_users_trip(self, client, auth_headers, other_user):
        trip = await create_trip(client, {"X-User-Id": str(other_user.id)})
        response = await client.get(f"/api/v1/trips/{trip['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_delete_trip(self, client, auth_headers):
        trip = await create_trip(client, auth_headers)

        response = await client.delete(f"/api/v1/trips/{trip['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"status": "deleted", "id": trip["id"]}

        response = await client.get(f"/api/v1/trips/{trip['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestTelemetry:
    async def test_samples(self, client, auth_headers):
        trip = await create_trip(client, auth_headers)

        response = await client.get(f"/api/v1/telemetry/{trip['id']}", headers=auth_headers)
        data = response.json()
        assert data["count"] == 60
        assert data["data"][1]["speed_kmh"] == 20.0

    async def test_downsample(self, client, auth_headers):
        trip = await create_trip(client, auth_headers)
        response = await client.get(
            f"/api/v1/telemetry/{trip['id']}", params={"downsample": 10}, headers=auth_headers
        )
        assert response.json()["count"] == 6

    async def test_gps_points_skip_missing_fixes(self, client, auth_headers):
        trip = await create_trip(client, auth_headers)
        response = await client.get(f"/api/v1/telemetry/{trip['id']}/gps", headers=auth_headers)
        assert response.json()["count"] == 0

    async def test_unknown_trip(self, client, auth_headers):
        response = await client.get(f"/api/v1/telemetry/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404


class TestUpload:
    async def test_upload_csv(self, client, auth_headers):
        response = await client.post(
            "/api/v1/upload/",
            files={"file": ("drive.csv", SAMPLE_CSV, "text/csv")},
            data={"temperature": "12.5", "route_type": "highway", "conditions": "rainy"},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        trip = response.json()
        assert trip["name"] == "drive"
        assert trip["source_filename"] == "drive.csv"
        assert trip["sample_count"] == 4
        assert trip["route_type"] == "highway"
        assert trip["weather_conditions"] == "rainy"
        assert trip["distance_km"] > 0

        response = await client.get(f"/api/v1/telemetry/{trip['id']}/gps", headers=auth_headers)
        assert response.json()["count"] == 4

    async def test_not_a_csv(self, client, auth_headers):
        response = await client.post(
            "/api/v1/upload/",
            files={"file": ("drive.txt", SAMPLE_CSV, "text/plain")},
            data={"temperature": "12.5"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_temperature_required(self, client, auth_headers):
        response = await client.post(
            "/api/v1/upload/",
            files={"file": ("drive.csv", SAMPLE_CSV, "text/csv")},
            headers=auth_headers,
        )
        assert response.status_code == 422

    async def test_empty_csv(self, client, auth_headers):
        response = await client.post(
            "/api/v1/upload/",
            files={"file": ("drive.csv", b"Time (sec),Speed\n", "text/csv")},
            data={"temperature": "12.5"},
            headers=auth_headers,
        )
        assert response.status_code == 422
