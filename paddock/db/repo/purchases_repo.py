from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.purchases import Purchase
from paddock.db.models.users import User
from paddock.economy.promotions.types import PurchaseEvent


class PurchasesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, purchase: Purchase) -> Purchase:
        session.add(purchase)
        await session.flush()
        await session.refresh(purchase, attribute_names=["created_at"])
        return purchase

    @staticmethod
    async def list_events_for_horse(
        session: AsyncSession,
        *,
        horse_id: int,
        min_qty: int = 1,
        since_utc: datetime | None = None,
        until_utc: datetime | None = None,
    ) -> list[PurchaseEvent]:
        stmt = select(Purchase.id, Purchase.user_id, Purchase.qty, Purchase.created_at).where(
            Purchase.horse_id == horse_id,
            Purchase.qty >= min_qty,
        )
        if since_utc is not None:
            stmt = stmt.where(Purchase.created_at >= since_utc)
        if until_utc is not None:
            stmt = stmt.where(Purchase.created_at <= until_utc)
        stmt = stmt.order_by(Purchase.created_at.asc(), Purchase.id.asc())
        result = await session.execute(stmt)
        return [
            PurchaseEvent(
                purchase_id=int(row.id),
                user_id=int(row.user_id),
                qty=int(row.qty),
                created_at=row.created_at,
            )
            for row in result
        ]

    @staticmethod
    async def map_user_emails(session: AsyncSession, user_ids: list[int]) -> dict[int, str]:
        if not user_ids:
            return {}
        stmt = select(User.id, User.email).where(User.id.in_(set(user_ids)))
        result = await session.execute(stmt)
        return {int(row.id): str(row.email) for row in result}
