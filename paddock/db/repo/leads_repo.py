from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.leads import InterestSignup, Lead


class LeadsRepo:
    @staticmethod
    async def upsert_interest(
        session: AsyncSession,
        *,
        email: str,
        source: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            pg_insert(InterestSignup)
            .values(email=email, source=source, created_at=now_utc)
            .on_conflict_do_update(
                index_elements=[InterestSignup.email],
                set_={"source": source},
            )
            .returning(InterestSignup.id)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def upsert_lead(
        session: AsyncSession,
        *,
        email: str,
        name: str | None,
        source: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            pg_insert(Lead)
            .values(email=email, name=name, source=source, created_at=now_utc, updated_at=now_utc)
            .on_conflict_do_update(
                index_elements=[Lead.email],
                set_={"name": name, "source": source, "updated_at": now_utc},
            )
            .returning(Lead.id)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())
