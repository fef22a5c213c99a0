from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from paddock.economy.renewals import service as renewal_service
from paddock.economy.renewals.errors import RenewalNotAllowedError, RenewalQuantityExceededError
from paddock.economy.renewals.service import RenewalService, is_cycle_open

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _cycle(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": 9,
        "horse_id": 1,
        "status": "open",
        "opens_at": NOW - timedelta(days=1),
        "closes_at": NOW + timedelta(days=1),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_cycle_open_only_within_window_and_status() -> None:
    assert is_cycle_open(_cycle(), now_utc=NOW) is True
    assert is_cycle_open(_cycle(opens_at=None, closes_at=None), now_utc=NOW) is True
    assert is_cycle_open(_cycle(status="draft"), now_utc=NOW) is False
    assert is_cycle_open(_cycle(opens_at=NOW + timedelta(seconds=1)), now_utc=NOW) is False
    assert is_cycle_open(_cycle(closes_at=NOW - timedelta(seconds=1)), now_utc=NOW) is False


def _install(monkeypatch, *, owned: int, renewed: int) -> None:
    async def _owned(session, *, user_id: int, horse_id: int) -> int:
        return owned

    async def _renewed(session, *, user_id: int, renew_cycle_id: int) -> int:
        return renewed

    async def _cycle_lookup(session, cycle_id: int):
        return _cycle(id=cycle_id)

    monkeypatch.setattr(renewal_service.OwnershipsRepo, "get_user_shares", _owned)
    monkeypatch.setattr(renewal_service.RenewalsRepo, "get_response_shares", _renewed)
    monkeypatch.setattr(renewal_service.RenewalsRepo, "get_cycle", _cycle_lookup)


@pytest.mark.asyncio
async def test_renewable_shares_excludes_already_renewed(monkeypatch) -> None:
    _install(monkeypatch, owned=5, renewed=2)

    assert await RenewalService.renewable_shares(object(), user_id=11, cycle=_cycle()) == 3


@pytest.mark.asyncio
async def test_renewal_requires_ownership(monkeypatch) -> None:
    _install(monkeypatch, owned=0, renewed=0)

    with pytest.raises(RenewalNotAllowedError):
        await RenewalService.renewable_shares(object(), user_id=11, cycle=_cycle())


@pytest.mark.asyncio
async def test_renewal_beyond_owned_shares_is_rejected(monkeypatch) -> None:
    _install(monkeypatch, owned=4, renewed=3)

    with pytest.raises(RenewalQuantityExceededError) as exc_info:
        await RenewalService.record_renewal(object(), user_id=11, renew_cycle_id=9, shares=2, now_utc=NOW)

    assert exc_info.value.allowed == 1
