from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.wallet_transactions import WalletTransaction
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.wallet_repo import WalletRepo
from paddock.economy.shares.errors import HorseNotFoundError
from paddock.economy.wallet.errors import InvalidWalletAmountError, NoOwnersError

logger = structlog.get_logger(__name__)

CHECKOUT_DEBIT_MEMO = "Applied to checkout"


@dataclass(frozen=True, slots=True)
class RaceWinningsCredit:
    user_id: int
    shares: int
    amount_pence: int


def balance_from_totals(*, credits_pence: int, debits_pence: int) -> int:
    return max(0, credits_pence - debits_pence)


def wallet_offset(*, requested_pence: int, balance_pence: int, subtotal_pence: int) -> int:
    return max(0, min(requested_pence, balance_pence, subtotal_pence))


class WalletService:
    @staticmethod
    async def get_balance(session: AsyncSession, *, user_id: int) -> int:
        credits, debits = await WalletRepo.get_posted_totals(session, user_id)
        return balance_from_totals(credits_pence=credits, debits_pence=debits)

    @staticmethod
    async def debit_for_checkout(
        session: AsyncSession,
        *,
        user_id: int,
        cart_id: int,
        amount_pence: int,
        now_utc: datetime,
    ) -> WalletTransaction:
        if amount_pence <= 0:
            raise InvalidWalletAmountError
        return await WalletRepo.create(
            session,
            transaction=WalletTransaction(
                user_id=user_id,
                type="debit",
                status="posted",
                amount_pence=amount_pence,
                memo=CHECKOUT_DEBIT_MEMO,
                cart_id=cart_id,
                created_at=now_utc,
            ),
        )

    @staticmethod
    async def credit_race_winnings(
        session: AsyncSession,
        *,
        horse_id: int,
        per_share_pence: int,
        memo: str | None,
        now_utc: datetime,
    ) -> list[RaceWinningsCredit]:
        if per_share_pence <= 0:
            raise InvalidWalletAmountError
        horse = await HorsesRepo.get_by_id(session, horse_id)
        if horse is None:
            raise HorseNotFoundError

        owners = await OwnershipsRepo.list_for_horse(session, horse_id)
        if not owners:
            raise NoOwnersError

        resolved_memo = memo or f"Race winnings: {horse.name}"
        credits: list[RaceWinningsCredit] = []
        for ownership in owners:
            amount = ownership.shares * per_share_pence
            await WalletRepo.create(
                session,
                transaction=WalletTransaction(
                    user_id=ownership.user_id,
                    type="credit",
                    status="posted",
                    amount_pence=amount,
                    memo=resolved_memo,
                    horse_id=horse_id,
                    created_at=now_utc,
                ),
            )
            credits.append(
                RaceWinningsCredit(user_id=ownership.user_id, shares=ownership.shares, amount_pence=amount)
            )

        logger.info(
            "race_winnings_credited",
            horse_id=horse_id,
            owners=len(credits),
            total_pence=sum(credit.amount_pence for credit in credits),
        )
        return credits
