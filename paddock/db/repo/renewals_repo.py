from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.renew_cycles import RenewCycle
from paddock.db.models.renew_responses import RenewResponse


class RenewalsRepo:
    @staticmethod
    async def get_cycle(session: AsyncSession, cycle_id: int) -> RenewCycle | None:
        return await session.get(RenewCycle, cycle_id)

    @staticmethod
    async def list_cycles_by_ids(
        session: AsyncSession,
        cycle_ids: Sequence[int],
    ) -> dict[int, RenewCycle]:
        ids = tuple({int(cycle_id) for cycle_id in cycle_ids})
        if not ids:
            return {}
        stmt = select(RenewCycle).where(RenewCycle.id.in_(ids))
        result = await session.execute(stmt)
        return {cycle.id: cycle for cycle in result.scalars().all()}

    @staticmethod
    async def add_response_shares(
        session: AsyncSession,
        *,
        user_id: int,
        renew_cycle_id: int,
        shares: int,
        now_utc: datetime,
    ) -> int:
        stmt = (
            pg_insert(RenewResponse)
            .values(
                user_id=user_id,
                renew_cycle_id=renew_cycle_id,
                shares=shares,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_update(
                index_elements=[RenewResponse.user_id, RenewResponse.renew_cycle_id],
                set_={
                    "shares": RenewResponse.shares + shares,
                    "updated_at": now_utc,
                },
            )
            .returning(RenewResponse.shares)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def get_response_shares(
        session: AsyncSession,
        *,
        user_id: int,
        renew_cycle_id: int,
    ) -> int:
        stmt = select(RenewResponse.shares).where(
            RenewResponse.user_id == user_id,
            RenewResponse.renew_cycle_id == renew_cycle_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)
