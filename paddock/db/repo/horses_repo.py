from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.horses import Horse


class HorsesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, horse_id: int) -> Horse | None:
        return await session.get(Horse, horse_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, horse_id: int) -> Horse | None:
        stmt = select(Horse).where(Horse.id == horse_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def lock_by_ids(session: AsyncSession, horse_ids: Sequence[int]) -> dict[int, Horse]:
        ids = sorted({int(horse_id) for horse_id in horse_ids})
        if not ids:
            return {}
        stmt = select(Horse).where(Horse.id.in_(ids)).order_by(Horse.id.asc()).with_for_update()
        result = await session.execute(stmt)
        return {horse.id: horse for horse in result.scalars().all()}

    @staticmethod
    async def list_by_ids(session: AsyncSession, horse_ids: Sequence[int]) -> dict[int, Horse]:
        ids = tuple({int(horse_id) for horse_id in horse_ids})
        if not ids:
            return {}
        stmt = select(Horse).where(Horse.id.in_(ids))
        result = await session.execute(stmt)
        return {horse.id: horse for horse in result.scalars().all()}

    @staticmethod
    async def list_all(session: AsyncSession) -> list[Horse]:
        stmt = select(Horse).order_by(Horse.created_at.desc(), Horse.id.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())
