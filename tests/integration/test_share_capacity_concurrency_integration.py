from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from sqlalchemy import func, select

from paddock.db.models.ownerships import Ownership
from paddock.db.models.purchases import Purchase
from paddock.db.session import SessionLocal
from paddock.economy.shares.errors import SharesUnavailableError
from paddock.economy.shares.service import ShareService
from tests.integration.syndicate_fixtures import UTC, _create_horse, _create_user


@pytest.mark.asyncio
async def test_parallel_direct_buys_never_oversell_a_horse() -> None:
    horse_id = await _create_horse(total_shares=10)
    first_user = await _create_user("capacity-first")
    second_user = await _create_user("capacity-second")
    barrier = asyncio.Event()

    async def _attempt(user_id: int) -> str:
        await barrier.wait()
        try:
            async with SessionLocal.begin() as session:
                await ShareService.buy_direct(
                    session,
                    user_id=user_id,
                    horse_id=horse_id,
                    qty=6,
                    now_utc=datetime.now(UTC),
                )
        except SharesUnavailableError:
            return "rejected"
        return "bought"

    tasks = [asyncio.create_task(_attempt(first_user)), asyncio.create_task(_attempt(second_user))]
    await asyncio.sleep(0)
    barrier.set()
    outcomes = await asyncio.gather(*tasks)

    assert sorted(outcomes) == ["bought", "rejected"]
    async with SessionLocal.begin() as session:
        sold = await session.scalar(
            select(func.coalesce(func.sum(Ownership.shares), 0)).where(Ownership.horse_id == horse_id)
        )
        purchases = await session.scalar(
            select(func.count(Purchase.id)).where(Purchase.horse_id == horse_id)
        )
    assert sold == 6
    assert purchases == 1


@pytest.mark.asyncio
async def test_repeat_purchases_accumulate_one_ownership_row() -> None:
    horse_id = await _create_horse(total_shares=100)
    user_id = await _create_user("capacity-repeat")

    for qty in (2, 3):
        async with SessionLocal.begin() as session:
            result = await ShareService.buy_direct(
                session,
                user_id=user_id,
                horse_id=horse_id,
                qty=qty,
                now_utc=datetime.now(UTC),
            )

    assert result.owned_shares == 5
    assert result.remaining_shares == 95
    async with SessionLocal.begin() as session:
        rows = (
            await session.execute(select(Ownership).where(Ownership.horse_id == horse_id))
        ).scalars().all()
        purchase_count = await session.scalar(
            select(func.count(Purchase.id)).where(Purchase.horse_id == horse_id)
        )
    assert [(row.user_id, row.shares) for row in rows] == [(user_id, 5)]
    assert purchase_count == 2
