from __future__ import annotations

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.wallet_transactions import WalletTransaction


class WalletRepo:
    @staticmethod
    async def get_posted_totals(session: AsyncSession, user_id: int) -> tuple[int, int]:
        credits = func.coalesce(
            func.sum(case((WalletTransaction.type == "credit", WalletTransaction.amount_pence), else_=0)),
            0,
        )
        debits = func.coalesce(
            func.sum(case((WalletTransaction.type == "debit", WalletTransaction.amount_pence), else_=0)),
            0,
        )
        stmt = select(credits, debits).where(
            WalletTransaction.user_id == user_id,
            WalletTransaction.status == "posted",
        )
        result = await session.execute(stmt)
        credit_total, debit_total = result.one()
        return int(credit_total or 0), int(debit_total or 0)

    @staticmethod
    async def create(session: AsyncSession, *, transaction: WalletTransaction) -> WalletTransaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        user_id: int,
        *,
        limit: int = 50,
    ) -> list[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
