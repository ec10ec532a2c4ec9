"""
HTTP surface tests. The data store dependency is overridden, so no database
or lifespan is involved.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import MASTER_ID, FailingDataStore, InMemoryDataStore, canonical_rule, local_dt
from dependencies.store import get_data_store
from main import app
from services.time_utils import business_tz, today_local

TARGET_DAY = today_local(datetime.now(timezone.utc), business_tz()) + timedelta(days=10)


@pytest.fixture
def store():
    return InMemoryDataStore(rules=[canonical_rule(d) for d in range(0, 7)], delay=0)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_data_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client():
    app.dependency_overrides[get_data_store] = lambda: FailingDataStore(delay=0)
    yield TestClient(app)
    app.dependency_overrides.clear()


def booking_body(hour: int, minute: int = 0) -> dict:
    start = local_dt(TARGET_DAY, hour, minute)
    return {
        "master_id": str(MASTER_ID),
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=1)).isoformat(),
    }


class TestAvailabilityEndpoints:

    def test_client_dates(self, client):
        response = client.get(f"/availability/{MASTER_ID}/dates")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "ready"
        assert len(body["data"]) == 30
        assert body["error"] is None

    def test_master_dates(self, client):
        response = client.get(f"/availability/{MASTER_ID}/dates", params={"mode": "master"})

        assert response.status_code == 200
        assert len(response.json()["data"]) == 90

    def test_days_override(self, client):
        response = client.get(f"/availability/{MASTER_ID}/dates", params={"days": 7})
        assert len(response.json()["data"]) == 7

    def test_unknown_mode_is_rejected(self, client):
        response = client.get(f"/availability/{MASTER_ID}/dates", params={"mode": "admin"})
        assert response.status_code == 422

    def test_day_slots(self, client):
        response = client.get(
            f"/availability/{MASTER_ID}/slots",
            params={"date": TARGET_DAY.isoformat(), "mode": "master"},
        )

        assert response.status_code == 200
        slots = response.json()["data"]
        assert len(slots) == 6
        assert all(s["is_selectable"] for s in slots)

    def test_failed_fetch_is_503(self, failing_client):
        dates = failing_client.get(f"/availability/{MASTER_ID}/dates")
        slots = failing_client.get(
            f"/availability/{MASTER_ID}/slots", params={"date": TARGET_DAY.isoformat()}
        )

        assert dates.status_code == 503
        assert slots.status_code == 503


class TestAppointmentEndpoints:

    def test_book_then_conflict(self, client, store):
        first = client.post("/appointments", params={"mode": "master"}, json=booking_body(10))
        second = client.post("/appointments", params={"mode": "master"}, json=booking_body(10))

        assert first.status_code == 201
        assert first.json()["status"] == "pending"
        assert second.status_code == 409
        assert len(store.appointments) == 1

    def test_master_status_override(self, client):
        response = client.post(
            "/appointments",
            params={"mode": "master", "status": "confirmed"},
            json=booking_body(12),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "confirmed"

    def test_off_grid_booking_is_400(self, client):
        response = client.post("/appointments", params={"mode": "master"}, json=booking_body(10, 30))
        assert response.status_code == 400

    def test_booking_with_failing_store_is_503(self, failing_client):
        response = failing_client.post("/appointments", params={"mode": "master"}, json=booking_body(10))
        assert response.status_code == 503

    def test_upcoming(self, client):
        client.post("/appointments", params={"mode": "master"}, json=booking_body(14))
        client.post("/appointments", params={"mode": "master"}, json=booking_body(11))

        response = client.get(f"/appointments/{MASTER_ID}/upcoming")

        assert response.status_code == 200
        starts = [a["start_time"] for a in response.json()]
        assert len(starts) == 2
        assert starts == sorted(starts)

    def test_upcoming_limit(self, client):
        for hour in (10, 11, 12):
            client.post("/appointments", params={"mode": "master"}, json=booking_body(hour))

        response = client.get(f"/appointments/{MASTER_ID}/upcoming", params={"limit": 2})

        assert len(response.json()) == 2

    def test_upcoming_with_failing_store_is_503(self, failing_client):
        response = failing_client.get(f"/appointments/{MASTER_ID}/upcoming")
        assert response.status_code == 503


class TestUninitialisedDatabase:

    def test_requests_fail_with_503(self):
        app.dependency_overrides.clear()

        response = TestClient(app).get(f"/availability/{MASTER_ID}/dates")

        assert response.status_code == 503
