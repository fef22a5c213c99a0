from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from sqlalchemy import select

from paddock.db.models.purchases import Purchase
from paddock.db.repo.promotions_repo import PromotionsRepo
from paddock.db.session import SessionLocal
from paddock.economy.promotions.service import PromotionService
from paddock.economy.shares.service import ShareService
from tests.integration.syndicate_fixtures import UTC, _create_horse, _create_promotion, _create_user


@pytest.mark.asyncio
async def test_parallel_buyers_never_exceed_quota_and_rank_by_commit_order() -> None:
    horse_id = await _create_horse(total_shares=100)
    promotion_id = await _create_promotion(horse_id=horse_id, quota=2, min_shares_required=3)
    buyers = [await _create_user(f"quota-buyer-{index}") for index in range(5)]
    barrier = asyncio.Event()

    async def _buy(user_id: int) -> None:
        await barrier.wait()
        async with SessionLocal.begin() as session:
            await ShareService.buy_direct(
                session,
                user_id=user_id,
                horse_id=horse_id,
                qty=3,
                now_utc=datetime.now(UTC),
            )

    tasks = [asyncio.create_task(_buy(user_id)) for user_id in buyers]
    await asyncio.sleep(0)
    barrier.set()
    await asyncio.gather(*tasks)

    now_utc = datetime.now(UTC)
    async with SessionLocal.begin() as session:
        promotion = await PromotionsRepo.get_by_id(session, promotion_id)
        assert promotion is not None
        evaluation = await PromotionService.evaluate(session, promotion=promotion, now_utc=now_utc)
        purchases = (
            await session.execute(
                select(Purchase)
                .where(Purchase.horse_id == horse_id)
                .order_by(Purchase.created_at.asc(), Purchase.id.asc())
            )
        ).scalars().all()
        export_rows = await PromotionService.list_qualifiers_for_export(
            session,
            promotion_id=promotion_id,
            now_utc=now_utc,
        )

    assert evaluation.claimed == 2
    assert evaluation.remaining == 0
    assert [qualifier.user_id for qualifier in evaluation.qualifiers] == [
        purchase.user_id for purchase in purchases[:2]
    ]
    assert [row.user_id for row in export_rows] == [purchase.user_id for purchase in purchases[:2]]

    display = await PromotionService.get_display_status(horse_id=horse_id, now_utc=now_utc)
    assert display.status == "full"
    assert display.claimed == 2
