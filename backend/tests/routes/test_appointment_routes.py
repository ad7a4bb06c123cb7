"""HTTP surface of the appointment API over an in-memory database."""

import pytest
from fastapi.testclient import TestClient

from scheduling.api.dependencies.database import get_db
from scheduling.api.dependencies.services import get_business_rules, get_clock
from scheduling.core.clock import FixedClock
from scheduling.domain.rules import BusinessRules
from scheduling.errors import PROBLEM_MEDIA_TYPE
from scheduling.main import create_app
from scheduling.repositories.service_catalog_repository import ServiceCatalogRepository
from tests.factories.appointment_builders import (
    CLIENT_ID,
    NOW,
    OTHER_CLIENT_ID,
    PROFESSIONAL_ID,
    SERVICE_30_ID,
    SERVICE_60_ID,
)

BASE = "/api/v1/appointments"


def _headers(actor_id: str) -> dict:
    return {"X-Actor-Id": actor_id}


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def client(session_factory, clock):
    seed = session_factory()
    catalog = ServiceCatalogRepository(seed)
    catalog.add_professional("Ana", professional_id=PROFESSIONAL_ID)
    catalog.add_service(PROFESSIONAL_ID, 30, "Haircut", service_id=SERVICE_30_ID)
    catalog.add_service(PROFESSIONAL_ID, 60, "Coloring", service_id=SERVICE_60_ID)
    seed.commit()
    seed.close()

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_business_rules] = lambda: BusinessRules()
    return TestClient(app)


def _book(client, start: str = "2024-02-15T14:00:00", service_id: str = SERVICE_60_ID, actor=CLIENT_ID):
    return client.post(
        f"{BASE}/",
        json={"professional_id": PROFESSIONAL_ID, "service_id": service_id, "scheduled_start": start},
        headers=_headers(actor),
    )


class TestCreate:
    def test_created(self, client):
        response = _book(client)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["client_id"] == CLIENT_ID
        assert body["scheduled_end"] == "2024-02-15T15:00:00"
        assert body["duration_minutes"] == 60
        assert body["allowed_transitions"] == ["ACCEPTED", "CANCELLED", "REJECTED"]

    def test_conflict_is_problem_json(self, client):
        _book(client)
        response = _book(client, "2024-02-15T14:30:00", SERVICE_30_ID, OTHER_CLIENT_ID)

        assert response.status_code == 409
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        body = response.json()
        assert body["code"] == "SLOT_CONFLICT"
        assert body["status"] == 409
        assert body["title"] == "Conflict"
        assert body["instance"] == f"{BASE}/"

    def test_weekend(self, client):
        response = _book(client, "2024-02-17T10:00:00")
        assert response.status_code == 400
        assert response.json()["code"] == "WEEKEND_NOT_ALLOWED"

    def test_unknown_service(self, client):
        response = _book(client, service_id=OTHER_CLIENT_ID)
        assert response.status_code == 404
        assert response.json()["code"] == "SERVICE_NOT_FOUND"

    def test_missing_actor_header(self, client):
        response = client.post(
            f"{BASE}/",
            json={
                "professional_id": PROFESSIONAL_ID,
                "service_id": SERVICE_60_ID,
                "scheduled_start": "2024-02-15T14:00:00",
            },
        )
        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_invalid_actor_header(self, client):
        response = _book(client, actor="not-a-ulid")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ACTOR_ID"

    def test_unknown_fields_rejected(self, client):
        response = client.post(
            f"{BASE}/",
            json={
                "professional_id": PROFESSIONAL_ID,
                "service_id": SERVICE_60_ID,
                "scheduled_start": "2024-02-15T14:00:00",
                "status": "ACCEPTED",
            },
            headers=_headers(CLIENT_ID),
        )
        assert response.status_code == 422


class TestAppointmentResource:
    @pytest.fixture
    def appointment_id(self, client):
        return _book(client).json()["id"]

    def test_get_for_party(self, client, appointment_id):
        response = client.get(f"{BASE}/{appointment_id}", headers=_headers(PROFESSIONAL_ID))
        assert response.status_code == 200
        assert response.json()["id"] == appointment_id

    def test_get_for_outsider(self, client, appointment_id):
        response = client.get(f"{BASE}/{appointment_id}", headers=_headers(OTHER_CLIENT_ID))
        assert response.status_code == 403
        assert response.json()["code"] == "APPOINTMENT_ACCESS_DENIED"

    def test_get_missing(self, client):
        response = client.get(f"{BASE}/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=_headers(CLIENT_ID))
        assert response.status_code == 404
        assert response.json()["code"] == "APPOINTMENT_NOT_FOUND"

    def test_get_malformed_id(self, client):
        response = client.get(f"{BASE}/abc", headers=_headers(CLIENT_ID))
        assert response.status_code == 422

    def test_accept_then_client_cannot_complete(self, client, appointment_id):
        accepted = client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "ACCEPTED", "note": "See you"},
            headers=_headers(PROFESSIONAL_ID),
        )
        assert accepted.status_code == 200
        assert accepted.json()["accepted_at"] == "2024-02-10T09:00:00"
        assert accepted.json()["allowed_transitions"] == ["CANCELLED", "COMPLETED"]

        response = client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "COMPLETED"},
            headers=_headers(CLIENT_ID),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "NOT_AUTHORIZED_FOR_TRANSITION"

    def test_terminal_appointment_offers_no_transitions(self, client, appointment_id):
        response = client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "REJECTED"},
            headers=_headers(PROFESSIONAL_ID),
        )
        assert response.json()["status"] == "REJECTED"
        assert response.json()["allowed_transitions"] == []

    def test_complete_before_end(self, client, appointment_id):
        client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "ACCEPTED"},
            headers=_headers(PROFESSIONAL_ID),
        )
        response = client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "COMPLETED"},
            headers=_headers(PROFESSIONAL_ID),
        )
        assert response.status_code == 422
        assert response.json()["code"] == "APPOINTMENT_STILL_FUTURE"

    def test_reschedule(self, client, appointment_id):
        response = client.post(
            f"{BASE}/{appointment_id}/reschedule",
            json={"scheduled_start": "2024-02-16T10:00:00"},
            headers=_headers(CLIENT_ID),
        )
        assert response.status_code == 200
        assert response.json()["scheduled_start"] == "2024-02-16T10:00:00"

    def test_reschedule_inside_edit_lead_time(self, client, clock, appointment_id):
        clock.set(NOW.replace(day=15, hour=0))
        response = client.post(
            f"{BASE}/{appointment_id}/reschedule",
            json={"scheduled_start": "2024-02-16T10:00:00"},
            headers=_headers(CLIENT_ID),
        )
        assert response.status_code == 422
        assert response.json()["code"] == "INSUFFICIENT_EDIT_LEAD_TIME"

    def test_unknown_status_value(self, client, appointment_id):
        response = client.post(
            f"{BASE}/{appointment_id}/status",
            json={"status": "ARCHIVED"},
            headers=_headers(PROFESSIONAL_ID),
        )
        assert response.status_code == 422


class TestCollections:
    def test_availability(self, client):
        _book(client)
        response = client.get(
            f"{BASE}/availability",
            params={"professional_id": PROFESSIONAL_ID, "service_id": SERVICE_30_ID, "date": "2024-02-15"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == "2024-02-15"
        assert len(body["slots"]) == 20
        assert body["available_count"] == 18
        occupied = [slot["time"] for slot in body["slots"] if slot["reason"] == "occupied"]
        assert occupied == ["14:00", "14:30"]

    def test_upcoming_and_history(self, client):
        booked = _book(client).json()

        upcoming = client.get(
            f"{BASE}/upcoming", params={"role": "client"}, headers=_headers(CLIENT_ID)
        ).json()
        history = client.get(
            f"{BASE}/history", params={"role": "client"}, headers=_headers(CLIENT_ID)
        ).json()

        assert upcoming["total"] == 1
        assert upcoming["items"][0]["id"] == booked["id"]
        assert history == {"items": [], "total": 0}

    def test_upcoming_rejects_unknown_role(self, client):
        response = client.get(
            f"{BASE}/upcoming", params={"role": "outsider"}, headers=_headers(CLIENT_ID)
        )
        assert response.status_code == 422

    def test_stats_for_the_caller(self, client):
        _book(client)
        response = client.get(
            f"{BASE}/stats", params={"role": "professional"}, headers=_headers(PROFESSIONAL_ID)
        )
        assert response.status_code == 200
        assert response.json() == {
            "total": 1,
            "pending": 1,
            "accepted": 0,
            "rejected": 0,
            "cancelled": 0,
            "completed": 0,
            "completion_rate": 0.0,
        }

    def test_stats_never_include_other_parties(self, client):
        _book(client)
        _book(client, "2024-02-15T16:00:00", actor=OTHER_CLIENT_ID)

        mine = client.get(f"{BASE}/stats", params={"role": "client"}, headers=_headers(CLIENT_ID))
        theirs_as_professional = client.get(
            f"{BASE}/stats", params={"role": "professional"}, headers=_headers(CLIENT_ID)
        )

        assert mine.json()["total"] == 1
        assert theirs_as_professional.json()["total"] == 0

    def test_stats_require_actor(self, client):
        response = client.get(f"{BASE}/stats", params={"role": "professional"})
        assert response.status_code == 422


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_metrics_exposes_scheduling_counters(client):
    _book(client)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "scheduling_decisions_total" in response.text
    assert 'endpoint="/api/v1/appointments/"' in response.text
