from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.promotions import Promotion


class PromotionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, promotion_id: int) -> Promotion | None:
        return await session.get(Promotion, promotion_id)

    @staticmethod
    async def list_for_horse(session: AsyncSession, horse_id: int) -> list[Promotion]:
        stmt = select(Promotion).where(Promotion.horse_id == horse_id).order_by(Promotion.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, promotion: Promotion) -> Promotion:
        session.add(promotion)
        await session.flush()
        return promotion
