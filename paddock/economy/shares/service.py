from __future__ import annotations

import math
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.core.money import MAX_SHARE_LINE_QTY
from paddock.db.models.horses import Horse
from paddock.db.models.purchases import Purchase
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.purchases_repo import PurchasesRepo
from paddock.db.repo.users_repo import UsersRepo
from paddock.economy.shares.errors import (
    HorseNotFoundError,
    InvalidShareQuantityError,
    SharesUnavailableError,
)
from paddock.economy.shares.types import (
    Holding,
    HorseListing,
    ShareAvailability,
    SharePurchaseResult,
)

logger = structlog.get_logger(__name__)


def build_availability(*, horse_id: int, total_shares: int, sold_shares: int) -> ShareAvailability:
    total = max(0, total_shares)
    sold = max(0, sold_shares)
    remaining = max(0, total - sold)
    if total <= 0 or sold <= 0:
        percent_sold = 0
    else:
        percent_sold = max(1, min(100, math.floor(sold * 100 / total)))
    return ShareAvailability(
        horse_id=horse_id,
        total_shares=total,
        sold_shares=sold,
        remaining_shares=remaining,
        percent_sold=percent_sold,
    )


class ShareService:
    @staticmethod
    async def get_availability(session: AsyncSession, *, horse_id: int) -> ShareAvailability:
        horse = await HorsesRepo.get_by_id(session, horse_id)
        if horse is None:
            raise HorseNotFoundError
        sold = await OwnershipsRepo.sum_shares_for_horse(session, horse_id)
        return build_availability(horse_id=horse.id, total_shares=horse.total_shares, sold_shares=sold)

    @staticmethod
    async def purchase_shares(
        session: AsyncSession,
        *,
        user_id: int,
        horse: Horse,
        qty: int,
        unit_price_pence: int,
        source: str,
        metadata: dict[str, object],
        now_utc: datetime,
    ) -> SharePurchaseResult:
        """Caller must hold the horse row lock (``HorsesRepo.get_by_id_for_update``)."""
        if qty < 1:
            raise InvalidShareQuantityError

        sold = await OwnershipsRepo.sum_shares_for_horse(session, horse.id)
        remaining = max(0, horse.total_shares - sold)
        if qty > remaining:
            logger.info(
                "share_purchase_rejected_capacity",
                horse_id=horse.id,
                user_id=user_id,
                requested=qty,
                remaining=remaining,
            )
            raise SharesUnavailableError(horse_id=horse.id, requested=qty, remaining=remaining)

        owned = await OwnershipsRepo.add_shares(
            session,
            user_id=user_id,
            horse_id=horse.id,
            shares=qty,
            now_utc=now_utc,
        )
        purchase = await PurchasesRepo.create(
            session,
            purchase=Purchase(
                user_id=user_id,
                horse_id=horse.id,
                qty=qty,
                unit_price_pence=unit_price_pence,
                source=source,
                metadata_=metadata,
            ),
        )
        return SharePurchaseResult(
            purchase_id=purchase.id,
            horse_id=horse.id,
            qty=qty,
            unit_price_pence=unit_price_pence,
            owned_shares=owned,
            remaining_shares=remaining - qty,
        )

    @staticmethod
    async def buy_direct(
        session: AsyncSession,
        *,
        user_id: int,
        horse_id: int,
        qty: int,
        now_utc: datetime,
    ) -> SharePurchaseResult:
        if qty < 1 or qty > MAX_SHARE_LINE_QTY:
            raise InvalidShareQuantityError

        horse = await HorsesRepo.get_by_id_for_update(session, horse_id)
        if horse is None or horse.share_price_pence is None:
            raise HorseNotFoundError

        result = await ShareService.purchase_shares(
            session,
            user_id=user_id,
            horse=horse,
            qty=qty,
            unit_price_pence=horse.share_price_pence,
            source="detail_buy",
            metadata={"source": "detail_buy"},
            now_utc=now_utc,
        )
        logger.info(
            "share_purchase_completed",
            horse_id=horse_id,
            user_id=user_id,
            qty=qty,
            purchase_id=result.purchase_id,
        )
        return result

    @staticmethod
    async def list_owner_emails(session: AsyncSession, *, horse_id: int) -> list[tuple[str, str]]:
        horse = await HorsesRepo.get_by_id(session, horse_id)
        if horse is None:
            raise HorseNotFoundError
        owners = await OwnershipsRepo.list_for_horse(session, horse_id)
        users = await UsersRepo.list_by_ids(session, [ownership.user_id for ownership in owners])
        return sorted((horse.name, user.email) for user in users)

    @staticmethod
    async def list_horses(session: AsyncSession) -> list[HorseListing]:
        horses = await HorsesRepo.list_all(session)
        sold = await OwnershipsRepo.sold_by_horse(session, [horse.id for horse in horses])
        return [
            HorseListing(
                horse_id=horse.id,
                name=horse.name,
                slug=horse.slug,
                trainer=horse.trainer,
                share_price_pence=horse.share_price_pence,
                availability=build_availability(
                    horse_id=horse.id,
                    total_shares=horse.total_shares,
                    sold_shares=sold.get(horse.id, 0),
                ),
            )
            for horse in horses
        ]

    @staticmethod
    async def list_holdings(session: AsyncSession, *, user_id: int) -> list[Holding]:
        ownerships = await OwnershipsRepo.list_for_user(session, user_id)
        horses = await HorsesRepo.list_by_ids(session, [ownership.horse_id for ownership in ownerships])
        holdings = [
            Holding(
                horse_id=ownership.horse_id,
                horse_name=horses[ownership.horse_id].name,
                shares=ownership.shares,
                renewed_at=ownership.renewed_at,
            )
            for ownership in ownerships
            if ownership.horse_id in horses
        ]
        return sorted(holdings, key=lambda holding: (holding.horse_name.lower(), holding.horse_id))
