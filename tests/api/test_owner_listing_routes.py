from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from fastapi.testclient import TestClient

from paddock.api.routes import ballots as ballot_routes
from paddock.api.routes import horses as horse_routes
from paddock.api.routes import votes as vote_routes
from paddock.economy.shares.types import Holding, HorseListing, ShareAvailability
from paddock.engagement.ballots.types import BallotSummary, OpenBallot
from paddock.engagement.votes.types import OpenVote, VoteChoice
from paddock.main import app
from tests.api.route_fakes import FakeSessionFactory

ALLOWED_CLIENT = ("127.0.0.1", 5100)
CUTOFF = datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc)


def test_horse_list_is_public_and_reports_availability(monkeypatch) -> None:
    async def _list_horses(session) -> list[HorseListing]:
        return [
            HorseListing(
                horse_id=3,
                name="Paddock Dancer",
                slug="paddock-dancer",
                trainer="J. Smith",
                share_price_pence=6000,
                availability=ShareAvailability(
                    horse_id=3,
                    total_shares=100,
                    sold_shares=40,
                    remaining_shares=60,
                    percent_sold=40,
                ),
            )
        ]

    monkeypatch.setattr(horse_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(horse_routes.ShareService, "list_horses", _list_horses)
    client = TestClient(app)

    response = client.get("/horses")

    assert response.status_code == 200
    assert response.json() == {
        "horses": [
            {
                "id": 3,
                "name": "Paddock Dancer",
                "slug": "paddock-dancer",
                "trainer": "J. Smith",
                "share_price_pence": 6000,
                "total_shares": 100,
                "sold_shares": 40,
                "remaining_shares": 60,
                "percent_sold": 40,
            }
        ]
    }


def test_my_ownerships_requires_user(access_settings) -> None:
    client = TestClient(app)

    response = client.get("/me/ownerships")

    assert response.status_code == 401


def test_my_ownerships_lists_holdings_with_total(monkeypatch, access_settings, user_headers) -> None:
    seen: dict[str, Any] = {}

    async def _list_holdings(session, *, user_id: int) -> list[Holding]:
        seen["user_id"] = user_id
        return [
            Holding(horse_id=3, horse_name="Paddock Dancer", shares=4, renewed_at=None),
            Holding(horse_id=8, horse_name="Stable Lad", shares=2, renewed_at=None),
        ]

    monkeypatch.setattr(horse_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(horse_routes.ShareService, "list_holdings", _list_holdings)
    client = TestClient(app)

    response = client.get("/me/ownerships", headers=user_headers)

    assert response.status_code == 200
    payload = response.json()
    assert seen["user_id"] == 11
    assert payload["total_shares"] == 6
    assert [holding["horse_id"] for holding in payload["holdings"]] == [3, 8]


def test_open_ballots_show_entry_state(monkeypatch, access_settings, user_headers) -> None:
    async def _list_open(session, *, user_id: int, now_utc: datetime) -> list[OpenBallot]:
        return [
            OpenBallot(
                ballot_id=4,
                horse_id=3,
                ballot_type="badge",
                title="Owners badges: Ascot",
                description=None,
                event_date=date(2026, 6, 18),
                cutoff_at=CUTOFF,
                max_winners=2,
                entry_count=5,
                entered=True,
            )
        ]

    monkeypatch.setattr(ballot_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(ballot_routes.BallotService, "list_open_for_user", _list_open)
    client = TestClient(app)

    response = client.get("/ballots", headers=user_headers)

    assert response.status_code == 200
    ballot = response.json()["ballots"][0]
    assert ballot["id"] == 4
    assert ballot["entry_count"] == 5
    assert ballot["entered"] is True
    assert ballot["event_date"] == "2026-06-18"


def test_admin_ballot_list_passes_status_filter(monkeypatch, access_settings, admin_headers) -> None:
    seen: dict[str, Any] = {}

    async def _list_for_admin(session, *, status: str | None) -> list[BallotSummary]:
        seen["status"] = status
        return [
            BallotSummary(
                ballot_id=9,
                horse_id=None,
                horse_name=None,
                ballot_type="stable",
                title="Stable visit",
                event_date=None,
                cutoff_at=CUTOFF,
                max_winners=10,
                status="closed",
                entry_count=12,
            )
        ]

    monkeypatch.setattr(ballot_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(ballot_routes.BallotService, "list_for_admin", _list_for_admin)
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/ballots?status=closed", headers=admin_headers)

    assert response.status_code == 200
    assert seen["status"] == "closed"
    assert response.json()["ballots"][0]["entry_count"] == 12

    client.get("/admin/ballots", headers=admin_headers)
    assert seen["status"] is None


def test_admin_ballot_list_rejects_unknown_status(access_settings, admin_headers) -> None:
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/ballots?status=pending", headers=admin_headers)

    assert response.status_code == 422


def test_admin_ballot_list_requires_admin(access_settings, user_headers) -> None:
    client = TestClient(app, client=ALLOWED_CLIENT)

    response = client.get("/admin/ballots", headers=user_headers)

    assert response.status_code == 403


def test_open_votes_expose_options_and_own_choice(monkeypatch, access_settings, user_headers) -> None:
    async def _list_open(session, *, user_id: int, now_utc: datetime) -> list[OpenVote]:
        return [
            OpenVote(
                vote_id=7,
                horse_id=None,
                title="Next season's colours",
                description=None,
                cutoff_at=None,
                options=[VoteChoice(option_id=21, label="Green"), VoteChoice(option_id=22, label="Gold")],
                my_option_id=22,
            )
        ]

    monkeypatch.setattr(vote_routes, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(vote_routes.VoteService, "list_open_for_user", _list_open)
    client = TestClient(app)

    response = client.get("/votes", headers=user_headers)

    assert response.status_code == 200
    vote = response.json()["votes"][0]
    assert vote["id"] == 7
    assert vote["options"] == [
        {"option_id": 21, "label": "Green"},
        {"option_id": 22, "label": "Gold"},
    ]
    assert vote["my_option_id"] == 22
