from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.testclient import TestClient

from paddock.api.routes import promotions as promotion_routes
from paddock.economy.promotions.errors import PromotionNotExportableError
from paddock.economy.promotions.service import QualifierExportRow
from paddock.economy.promotions.types import PromotionDisplay
from paddock.main import app
from tests.api.route_fakes import FakeSessionFactory

ALLOWED_CLIENT = ("127.0.0.1", 5100)


def test_basket_rejects_wrong_gateway_token(access_settings) -> None:
    client = TestClient(app)

    response = client.get("/basket", headers={"X-Gateway-Token": "wrong", "X-User-Id": "11"})

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_UNAUTHORIZED"}}


def test_basket_rejects_missing_user_id(access_settings) -> None:
    client = TestClient(app)

    response = client.get("/basket", headers={"X-Gateway-Token": "gateway-secret", "X-User-Id": "abc"})

    assert response.status_code == 401


def test_admin_export_rejects_disallowed_ip(access_settings, admin_headers) -> None:
    client = TestClient(app, client=("10.0.0.25", 5100))

    response = client.get("/admin/promotions/1/export", headers=admin_headers)

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_admin_export_rejects_missing_token(access_settings) -> None:
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/promotions/1/export")

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_admin_export_streams_qualifier_csv(monkeypatch, access_settings, admin_headers) -> None:
    qualified_at = datetime(2026, 5, 1, 11, 2, tzinfo=timezone.utc)

    async def _rows(session, **kwargs: Any) -> list[QualifierExportRow]:
        return [
            QualifierExportRow(email="b@example.test", user_id=102, horse_id=7, qualified_at=qualified_at),
        ]

    monkeypatch.setattr(promotion_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(promotion_routes.PromotionService, "list_qualifiers_for_export", _rows)
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/promotions/3/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="promotion_3_emails.csv"' in response.headers["content-disposition"]
    assert response.text == (
        "email,user_id,horse_id,qualified_at\n"
        "b@example.test,102,7,2026-05-01T11:02:00+00:00\n"
    )


def test_admin_export_rejects_unconfigured_promotion(monkeypatch, access_settings, admin_headers) -> None:
    async def _rows(session, **kwargs: Any) -> list[QualifierExportRow]:
        raise PromotionNotExportableError

    monkeypatch.setattr(promotion_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(promotion_routes.PromotionService, "list_qualifiers_for_export", _rows)
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/promotions/3/export", headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"detail": {"code": "E_PROMOTION_NOT_EXPORTABLE"}}


def test_admin_owner_emails_export(monkeypatch, access_settings, admin_headers) -> None:
    async def _owners(session, **kwargs: Any) -> list[tuple[str, str]]:
        return [("Paddock Dancer", "a@example.test"), ("Paddock Dancer", "b@example.test")]

    monkeypatch.setattr(promotion_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(promotion_routes.ShareService, "list_owner_emails", _owners)
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/horses/7/owner-emails", headers=admin_headers)

    assert response.status_code == 200
    assert response.text.splitlines() == [
        "Horse Name,Email",
        "Paddock Dancer,a@example.test",
        "Paddock Dancer,b@example.test",
    ]


def test_promotion_stats_are_public_and_not_cached(monkeypatch) -> None:
    async def _display(**kwargs: Any) -> PromotionDisplay:
        return PromotionDisplay(
            status="active",
            promotion_id=3,
            label="First 2 buyers",
            quota=2,
            min_shares_required=3,
            claimed=1,
            remaining=1,
        )

    monkeypatch.setattr(promotion_routes.PromotionService, "get_display_status", _display)
    client = TestClient(app)

    response = client.get("/promotions/stats", params={"horse_id": 7})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    body = response.json()
    assert body["status"] == "active"
    assert body["remaining"] == 1


def test_promotion_stats_requires_positive_horse_id() -> None:
    client = TestClient(app)

    response = client.get("/promotions/stats", params={"horse_id": 0})

    assert response.status_code == 422
