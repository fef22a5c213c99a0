from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from paddock.api.routes import leads as lead_routes
from paddock.main import app
from tests.api.route_fakes import FakeSessionFactory


def test_interest_status_answers_get() -> None:
    client = TestClient(app)

    response = client.get("/api/interest")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "method": "GET"}


def test_interest_normalizes_email_and_defaults_source(monkeypatch) -> None:
    stored: list[dict[str, Any]] = []

    async def _upsert(session, **kwargs: Any) -> None:
        stored.append(kwargs)

    monkeypatch.setattr(lead_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(lead_routes.LeadsRepo, "upsert_interest", _upsert)
    client = TestClient(app)

    response = client.post("/api/interest", json={"email": "Owner@Example.com"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert stored[0]["email"] == "owner@example.com"
    assert stored[0]["source"] == "home"


def test_interest_rejects_invalid_email() -> None:
    client = TestClient(app)

    response = client.post("/api/interest", json={"email": "not-an-email"})

    assert response.status_code == 422


def test_lead_uses_referer_as_source(monkeypatch) -> None:
    stored: list[dict[str, Any]] = []

    async def _upsert(session, **kwargs: Any) -> None:
        stored.append(kwargs)

    monkeypatch.setattr(lead_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(lead_routes.LeadsRepo, "upsert_lead", _upsert)
    client = TestClient(app)

    response = client.post(
        "/api/lead",
        json={"email": "lead@example.com", "name": "Lee"},
        headers={"referer": "https://paddock.example.com/horses/7"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "stored": True}
    assert stored[0]["source"] == "https://paddock.example.com/horses/7"
    assert stored[0]["name"] == "Lee"


def test_lead_store_failure_is_reported_not_raised(monkeypatch) -> None:
    async def _upsert(session, **kwargs: Any) -> None:
        raise OperationalError("INSERT", {}, Exception("db down"))

    monkeypatch.setattr(lead_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(lead_routes.LeadsRepo, "upsert_lead", _upsert)
    client = TestClient(app)

    response = client.post("/api/lead", json={"email": "lead@example.com"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "stored": False}


def test_contact_message_is_enqueued(monkeypatch) -> None:
    enqueued: list[dict[str, Any]] = []

    async def _enqueue(task, *, event: str, **kwargs: Any) -> bool:
        enqueued.append({"event": event, **kwargs})
        return True

    monkeypatch.setattr(lead_routes, "enqueue_task", _enqueue)
    client = TestClient(app)

    response = client.post(
        "/api/contact",
        json={"name": " Sam ", "email": "sam@example.com", "phone": "0123", "message": "Hello"},
    )

    assert response.status_code == 200
    assert enqueued == [
        {
            "event": "contact_message",
            "name": "Sam",
            "email": "sam@example.com",
            "phone": "0123",
            "message": "Hello",
        }
    ]


def test_contact_message_reports_unavailable_broker(monkeypatch) -> None:
    async def _enqueue(task, *, event: str, **kwargs: Any) -> bool:
        return False

    monkeypatch.setattr(lead_routes, "enqueue_task", _enqueue)
    client = TestClient(app)

    response = client.post(
        "/api/contact",
        json={"name": "Sam", "email": "sam@example.com", "message": "Hello"},
    )

    assert response.status_code == 503
    assert response.json() == {"detail": {"code": "E_CONTACT_UNAVAILABLE"}}
