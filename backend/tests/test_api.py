"""End-to-end tests for the HTTP API: sessions, roles and core flows."""

from datetime import timedelta

from app.core.timeutils import utcnow
from app.models.enums import Role


class TestAuthEndpoints:
    async def test_register_then_login_sets_cookie(self, client):
        response = await client.post(
            "/api/auth/registration",
            json={"email": "Ada@Example.com", "password": "password123", "first_name": "Ada", "last_name": "L"},
        )
        assert response.status_code == 201
        assert response.json()["email"] == "ada@example.com"
        assert response.json()["role"] == "OBSERVER"

        response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "password123"})
        assert response.status_code == 200
        assert "session_token" in response.cookies

        me = await client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["first_name"] == "Ada"

    async def test_duplicate_registration_conflicts(self, client, make_user):
        await make_user("taken@example.com")

        response = await client.post(
            "/api/auth/registration",
            json={"email": "taken@example.com", "password": "password123", "first_name": "A", "last_name": "B"},
        )

        assert response.status_code == 409

    async def test_wrong_password(self, client, make_user):
        await make_user("user@example.com")

        response = await client.post("/api/auth/login", json={"email": "user@example.com", "password": "wrongpass1"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_me_without_cookie(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_tampered_cookie_is_rejected(self, client):
        client.cookies.set("session_token", "forged-value")

        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired session"

    async def test_logout_invalidates_session(self, client, login):
        await login()
        cookie = client.cookies.get("session_token")

        response = await client.post("/api/auth/logout")
        assert response.json() == {"message": "Logged out successfully"}

        client.cookies.set("session_token", cookie)
        assert (await client.get("/api/auth/me")).status_code == 401

    async def test_login_is_recorded_in_activity_log(self, client, login):
        admin = await login(Role.ADMIN)

        response = await client.get(f"/api/user-activity-logs/user/{admin.id}")

        assert response.status_code == 200
        assert [entry["action"] for entry in response.json()] == ["LOGIN"]


class TestRoles:
    async def test_protected_route_requires_session(self, client):
        assert (await client.get("/api/users/")).status_code == 401

    async def test_observer_cannot_manage_users(self, client, login):
        await login(Role.OBSERVER)

        response = await client.get("/api/users/")

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"

    async def test_admin_passes_operator_checks(self, client, login):
        await login(Role.ADMIN)

        response = await client.post("/api/stations/", json={"name": "Odesa Port", "latitude": 46.48, "longitude": 30.72})

        assert response.status_code == 201

    async def test_operator_cannot_remove_station(self, client, login):
        await login(Role.OPERATOR)
        created = await client.post("/api/stations/", json={"name": "Dnipro", "latitude": 48.46, "longitude": 35.04})

        response = await client.delete(f"/api/stations/{created.json()['id']}")

        assert response.status_code == 403

    async def test_change_role_and_list_sessions(self, client, login, make_user):
        admin = await login(Role.ADMIN)
        target = await make_user("target@example.com")

        response = await client.patch(f"/api/users/{target.id}/role", json={"role": "OPERATOR"})
        assert response.status_code == 200
        assert response.json()["role"] == "OPERATOR"

        sessions = await client.get(f"/api/users/{admin.id}/sessions")
        assert sessions.status_code == 200
        assert len(sessions.json()) == 1

    async def test_block_user(self, client, login, make_user):
        await login(Role.ADMIN)
        target = await make_user("blocked@example.com")

        response = await client.patch(f"/api/users/{target.id}/block")

        assert response.status_code == 200
        assert response.json()["is_active"] is False


class TestMonitoringFlow:
    async def test_public_station_listing(self, client, make_station_with_sensor):
        station, _ = await make_station_with_sensor()

        response = await client.get("/api/stations/")

        assert response.status_code == 200
        [item] = response.json()
        assert item["id"] == station.id
        assert item["sensors"][0]["serial_number"] == "SN-001"

    async def test_missing_station_is_404(self, client):
        response = await client.get("/api/stations/999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Monitoring station with ID 999 not found"

    async def test_device_ingest_raises_alert(self, client, login, make_station_with_sensor):
        station, sensor = await make_station_with_sensor()
        await login(Role.OPERATOR)
        threshold = await client.post(
            "/api/thresholds/",
            json={"sensor_type": "TEMPERATURE", "severity": "HIGH", "min_value": 0, "max_value": 30},
        )
        assert threshold.status_code == 201

        reading = await client.post(
            "/api/sensor-readings/", json={"serial_number": sensor.serial_number, "value": 36.6, "unit": "°C"}
        )
        assert reading.status_code == 201
        body = reading.json()
        assert body["sensor"]["station"]["name"] == station.name
        assert body["threshold_violations"][0]["severity"] == "HIGH"

        alerts = await client.get("/api/station-alerts/active", params={"station_id": station.id})
        assert alerts.status_code == 200
        page = alerts.json()
        assert page["total"] == 1
        alert_id = page["items"][0]["id"]

        acknowledged = await client.patch(f"/api/station-alerts/{alert_id}/acknowledge")
        assert acknowledged.json()["acknowledged"] is True

        resolved = await client.patch(f"/api/station-alerts/{alert_id}/resolve")
        assert resolved.json()["is_active"] is False

    async def test_alert_query_validation(self, client, login):
        await login()

        response = await client.get("/api/station-alerts/history", params={"limit": 0})

        assert response.status_code == 422

    async def test_readings_range_is_validated(self, client, login):
        await login()
        now = utcnow()

        response = await client.get(
            "/api/sensor-readings/",
            params={"start_time": now.isoformat(), "end_time": (now - timedelta(hours=1)).isoformat()},
        )

        assert response.status_code == 400

    async def test_nearby_stations(self, client, login, make_station_with_sensor):
        await make_station_with_sensor()
        await login()

        response = await client.get("/api/stations/nearby", params={"latitude": 50.45, "longitude": 30.52, "radius": 500})

        assert response.status_code == 200
        assert response.json()[0]["distance_m"] == 0.0

    async def test_preferences_switch_stats_units(self, client, login, make_station_with_sensor):
        station, sensor = await make_station_with_sensor()
        await login(Role.OPERATOR)
        await client.post("/api/sensor-readings/", json={"serial_number": sensor.serial_number, "value": 0, "unit": "°C"})

        updated = await client.patch("/api/settings/", json={"measurement_unit": "imperial"})
        assert updated.status_code == 200

        stats = await client.get(f"/api/stations/{station.id}/stats")
        assert stats.status_code == 200
        assert stats.json()["unit_system"] == "imperial"
        assert stats.json()["sensors"][0]["last_reading"]["value"] == 32.0

    async def test_export_lifecycle(self, client, login):
        await login()

        created = await client.post("/api/data-exports/", json={"format": "CSV"})
        assert created.status_code == 201
        export_id = created.json()["id"]

        fetched = await client.get(f"/api/data-exports/{export_id}")
        assert fetched.json()["status"] == "COMPLETED"

        download = await client.get(f"/api/data-exports/{export_id}/download")
        assert download.status_code == 200
        assert download.headers["content-type"].startswith("text/csv")
        assert download.text.startswith("DATA_TYPE,TIMESTAMP")

    async def test_system_health_for_admin(self, client, login):
        await login(Role.ADMIN)

        response = await client.get("/api/system/health")

        assert response.status_code == 200
        assert set(response.json()["checks"]) == {"database", "disk", "memory", "cpu"}
