from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from paddock.db.models.horses import Horse
from paddock.db.models.promotions import Promotion
from paddock.db.models.users import User
from paddock.db.models.wallet_transactions import WalletTransaction
from paddock.db.session import SessionLocal
from paddock.economy.shares.service import ShareService

UTC = timezone.utc


async def _create_user(seed: str) -> int:
    async with SessionLocal.begin() as session:
        user = User(email=f"{seed}-{uuid4().hex[:8]}@example.test", full_name=seed.title())
        session.add(user)
        await session.flush()
        return user.id


async def _create_horse(
    *,
    total_shares: int,
    share_price_pence: int = 6000,
    name: str = "Paddock Dancer",
) -> int:
    async with SessionLocal.begin() as session:
        horse = Horse(
            name=name,
            slug=f"horse-{uuid4().hex[:10]}",
            total_shares=total_shares,
            share_price_pence=share_price_pence,
        )
        session.add(horse)
        await session.flush()
        return horse.id


async def _create_promotion(
    *,
    horse_id: int,
    quota: int,
    min_shares_required: int,
    start_at: datetime | None = None,
) -> int:
    async with SessionLocal.begin() as session:
        promotion = Promotion(
            horse_id=horse_id,
            enabled=True,
            quota=quota,
            min_shares_required=min_shares_required,
            start_at=start_at,
            end_at=None,
        )
        session.add(promotion)
        await session.flush()
        return promotion.id


async def _credit_wallet(*, user_id: int, amount_pence: int) -> None:
    async with SessionLocal.begin() as session:
        session.add(
            WalletTransaction(
                user_id=user_id,
                type="credit",
                status="posted",
                amount_pence=amount_pence,
                memo="integration credit",
            )
        )
        await session.flush()


async def _buy_shares(*, user_id: int, horse_id: int, qty: int) -> None:
    async with SessionLocal.begin() as session:
        await ShareService.buy_direct(
            session,
            user_id=user_id,
            horse_id=horse_id,
            qty=qty,
            now_utc=datetime.now(UTC),
        )
