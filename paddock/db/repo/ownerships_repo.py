from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.ownerships import Ownership


class OwnershipsRepo:
    @staticmethod
    async def sum_shares_for_horse(session: AsyncSession, horse_id: int) -> int:
        stmt = select(func.coalesce(func.sum(Ownership.shares), 0)).where(
            Ownership.horse_id == horse_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_user_shares(session: AsyncSession, *, user_id: int, horse_id: int) -> int:
        stmt = select(Ownership.shares).where(
            Ownership.user_id == user_id,
            Ownership.horse_id == horse_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def user_owns_any(session: AsyncSession, *, user_id: int) -> bool:
        stmt = select(Ownership.id).where(Ownership.user_id == user_id, Ownership.shares > 0).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def add_shares(
        session: AsyncSession,
        *,
        user_id: int,
        horse_id: int,
        shares: int,
        now_utc: datetime,
    ) -> int:
        stmt = (
            pg_insert(Ownership)
            .values(
                user_id=user_id,
                horse_id=horse_id,
                shares=shares,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_update(
                index_elements=[Ownership.user_id, Ownership.horse_id],
                set_={
                    "shares": Ownership.shares + shares,
                    "updated_at": now_utc,
                },
            )
            .returning(Ownership.shares)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def stamp_renewed(
        session: AsyncSession,
        *,
        user_id: int,
        horse_id: int,
        renewed_at: datetime,
    ) -> int:
        stmt = (
            update(Ownership)
            .where(Ownership.user_id == user_id, Ownership.horse_id == horse_id)
            .values(renewed_at=renewed_at, updated_at=renewed_at)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def list_for_horse(session: AsyncSession, horse_id: int) -> list[Ownership]:
        stmt = (
            select(Ownership)
            .where(Ownership.horse_id == horse_id, Ownership.shares > 0)
            .order_by(Ownership.user_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def sold_by_horse(session: AsyncSession, horse_ids: Sequence[int]) -> dict[int, int]:
        ids = tuple({int(horse_id) for horse_id in horse_ids})
        if not ids:
            return {}
        stmt = (
            select(Ownership.horse_id, func.coalesce(func.sum(Ownership.shares), 0))
            .where(Ownership.horse_id.in_(ids))
            .group_by(Ownership.horse_id)
        )
        result = await session.execute(stmt)
        return {int(horse_id): int(sold) for horse_id, sold in result.all()}

    @staticmethod
    async def list_for_user(session: AsyncSession, user_id: int) -> list[Ownership]:
        stmt = (
            select(Ownership)
            .where(Ownership.user_id == user_id, Ownership.shares > 0)
            .order_by(Ownership.horse_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
