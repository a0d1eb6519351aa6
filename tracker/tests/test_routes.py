"""
Tests for the HTTP API.

Requests run against the db_session database through a dependency override.
"""
import pytest
from fastapi.testclient import TestClient

from tracker.main import app
from tracker.database import get_db
from tracker.auth import API_KEY


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app, headers={"X-API-Key": API_KEY})
    finally:
        app.dependency_overrides.clear()


def create_discipline(client, **fields):
    payload = {"title": "Wake up at 5 AM", "frequency": "DAILY"}
    payload.update(fields)
    response = client.post("/api/disciplines", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:
    def test_missing_key_rejected(self, db_session):
        app.dependency_overrides[get_db] = lambda: db_session
        try:
            response = TestClient(app).get("/api/disciplines")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401

    def test_health_check_is_public(self):
        response = TestClient(app).get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "active"


class TestDisciplineRoutes:
    """CRUD and lifecycle endpoints"""

    def test_create_returns_label(self, client):
        body = create_discipline(
            client, frequency="SPECIFIC_DAYS", specific_days=["Friday", "monday"]
        )

        assert body["status"] == "ACTIVE"
        assert body["specific_days"] == ["monday", "friday"]
        assert body["frequency_label"] == "Mon/Fri"

    def test_empty_specific_days_rejected(self, client):
        response = client.post("/api/disciplines", json={
            "title": "Gym",
            "frequency": "SPECIFIC_DAYS",
            "specific_days": []
        })

        assert response.status_code == 422

    def test_update_to_specific_days_without_days(self, client):
        discipline = create_discipline(client)

        response = client.put(
            f"/api/disciplines/{discipline['id']}", json={"frequency": "SPECIFIC_DAYS"}
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("payload", [{"frequency": None}, {"title": None}])
    def test_null_required_field_rejected(self, client, payload):
        discipline = create_discipline(client)
        url = f"/api/disciplines/{discipline['id']}"

        response = client.put(url, json=payload)

        assert response.status_code == 422
        body = client.get(url).json()
        assert body["title"] == "Wake up at 5 AM"
        assert body["frequency"] == "DAILY"

    def test_non_list_specific_days_rejected(self, client):
        response = client.post("/api/disciplines", json={
            "title": "Gym",
            "frequency": "SPECIFIC_DAYS",
            "specific_days": 5
        })

        assert response.status_code == 422

    def test_switch_to_daily_drops_days(self, client):
        discipline = create_discipline(client, frequency="SPECIFIC_DAYS", specific_days=["monday"])

        body = client.put(
            f"/api/disciplines/{discipline['id']}", json={"frequency": "DAILY"}
        ).json()

        assert body["specific_days"] is None
        assert body["frequency_label"] == "Daily"

    def test_unknown_discipline(self, client):
        assert client.get("/api/disciplines/999").status_code == 404
        assert client.post("/api/disciplines/999/check-in", json={"rating": "CLOSE"}).status_code == 404

    def test_graduate_twice_is_rejected(self, client):
        discipline = create_discipline(client)
        url = f"/api/disciplines/{discipline['id']}/graduate"

        first = client.post(url, json={"reflection": "Automatic now"})
        second = client.post(url, json={"reflection": "Again"})

        assert first.status_code == 200
        assert first.json()["status"] == "INGRAINED"
        assert second.status_code == 400

    def test_list_filtered_by_status(self, client):
        kept = create_discipline(client, title="Kept")
        retired = create_discipline(client, title="Dropped")
        client.post(f"/api/disciplines/{retired['id']}/retire", json={})

        response = client.get("/api/disciplines", params={"status": "ACTIVE"})

        assert [d["id"] for d in response.json()] == [kept["id"]]

    def test_evolve_and_lineage(self, client):
        original = create_discipline(client, title="Wake at 6")

        response = client.post(
            f"/api/disciplines/{original['id']}/evolve", json={"title": "Wake at 5"}
        )
        successor = response.json()
        lineage = client.get(f"/api/disciplines/{successor['id']}/lineage").json()

        assert response.status_code == 201
        assert successor["evolved_from_id"] == original["id"]
        assert [d["id"] for d in lineage] == [successor["id"], original["id"]]

    def test_delete(self, client):
        discipline = create_discipline(client)

        response = client.delete(f"/api/disciplines/{discipline['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/disciplines/{discipline['id']}").status_code == 404

    def test_limit_warning(self, client):
        for i in range(3):
            create_discipline(client, title=f"Discipline {i}")

        body = client.get("/api/disciplines/limit-warning").json()

        assert body == {"active_count": 3, "should_warn": True}


class TestCheckInRoutes:
    """Check-in, stats and today endpoints"""

    def test_check_in_then_stats(self, client):
        discipline = create_discipline(client)
        url = f"/api/disciplines/{discipline['id']}"

        check = client.post(f"{url}/check-in", json={"rating": "NAILED_IT", "actual_time": "05:02"})
        stats = client.get(f"{url}/stats").json()

        assert check.status_code == 200
        assert check.json()["rating"] == "NAILED_IT"
        assert stats["streak"] == 1
        assert stats["total_checks"] == 1
        assert stats["nailed_it_count"] == 1

    def test_repeat_check_in_overwrites(self, client):
        discipline = create_discipline(client)
        url = f"/api/disciplines/{discipline['id']}"

        client.post(f"{url}/check-in", json={"rating": "MISSED"})
        client.post(f"{url}/check-in", json={"rating": "CLOSE"})
        checks = client.get(f"{url}/checks").json()

        assert len(checks) == 1
        assert checks[0]["rating"] == "CLOSE"

    def test_invalid_rating(self, client):
        discipline = create_discipline(client)

        response = client.post(
            f"/api/disciplines/{discipline['id']}/check-in", json={"rating": "ALMOST"}
        )

        assert response.status_code == 422

    def test_stats_rejects_bad_quarter(self, client):
        discipline = create_discipline(client)

        response = client.get(
            f"/api/disciplines/{discipline['id']}/stats", params={"quarter": "2026-Q7"}
        )

        assert response.status_code == 422

    def test_delete_check(self, client):
        discipline = create_discipline(client)
        check = client.post(
            f"/api/disciplines/{discipline['id']}/check-in", json={"rating": "CLOSE"}
        ).json()

        assert client.delete(f"/api/disciplines/checks/{check['id']}").status_code == 204
        assert client.delete(f"/api/disciplines/checks/{check['id']}").status_code == 404

    def test_today(self, client):
        discipline = create_discipline(client, frequency="ALWAYS")
        client.post(f"/api/disciplines/{discipline['id']}/check-in", json={"rating": "NAILED_IT"})

        [entry] = client.get("/api/disciplines/today").json()

        assert entry["is_applicable_today"] is True
        assert entry["today_check"]["rating"] == "NAILED_IT"
        assert entry["streak"] == 1
        assert entry["next_applicable_day"] is None


class TestQuarterRoutes:
    def test_current_quarter(self, client):
        body = client.get("/api/quarters/current").json()

        assert body["quarter"].count("-Q") == 1
        assert body["label"].startswith("Q")
        assert len(body["months"]) == 3
        assert 1 <= body["week"] <= 13
        assert body["total_weeks"] in (13, 14)
