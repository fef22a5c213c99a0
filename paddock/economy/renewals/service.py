from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.renew_cycles import RenewCycle
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.renewals_repo import RenewalsRepo
from paddock.economy.renewals.errors import (
    RenewalCycleClosedError,
    RenewalCycleNotFoundError,
    RenewalNotAllowedError,
    RenewalQuantityExceededError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RenewalRecord:
    renew_cycle_id: int
    horse_id: int
    shares: int
    total_renewed: int


def is_cycle_open(cycle: RenewCycle, *, now_utc: datetime) -> bool:
    if cycle.status != "open":
        return False
    if cycle.opens_at is not None and now_utc < cycle.opens_at:
        return False
    if cycle.closes_at is not None and now_utc > cycle.closes_at:
        return False
    return True


class RenewalService:
    @staticmethod
    async def get_open_cycle(
        session: AsyncSession,
        *,
        renew_cycle_id: int,
        now_utc: datetime,
    ) -> RenewCycle:
        cycle = await RenewalsRepo.get_cycle(session, renew_cycle_id)
        if cycle is None:
            raise RenewalCycleNotFoundError
        if not is_cycle_open(cycle, now_utc=now_utc):
            raise RenewalCycleClosedError
        return cycle

    @staticmethod
    async def renewable_shares(
        session: AsyncSession,
        *,
        user_id: int,
        cycle: RenewCycle,
    ) -> int:
        owned = await OwnershipsRepo.get_user_shares(session, user_id=user_id, horse_id=cycle.horse_id)
        if owned <= 0:
            raise RenewalNotAllowedError
        already_renewed = await RenewalsRepo.get_response_shares(
            session,
            user_id=user_id,
            renew_cycle_id=cycle.id,
        )
        return max(0, owned - already_renewed)

    @staticmethod
    async def record_renewal(
        session: AsyncSession,
        *,
        user_id: int,
        renew_cycle_id: int,
        shares: int,
        now_utc: datetime,
    ) -> RenewalRecord:
        cycle = await RenewalService.get_open_cycle(
            session,
            renew_cycle_id=renew_cycle_id,
            now_utc=now_utc,
        )
        allowed = await RenewalService.renewable_shares(session, user_id=user_id, cycle=cycle)
        if shares > allowed:
            raise RenewalQuantityExceededError(
                renew_cycle_id=renew_cycle_id,
                requested=shares,
                allowed=allowed,
            )

        total = await RenewalsRepo.add_response_shares(
            session,
            user_id=user_id,
            renew_cycle_id=cycle.id,
            shares=shares,
            now_utc=now_utc,
        )
        await OwnershipsRepo.stamp_renewed(
            session,
            user_id=user_id,
            horse_id=cycle.horse_id,
            renewed_at=now_utc,
        )
        logger.info(
            "renewal_recorded",
            user_id=user_id,
            renew_cycle_id=cycle.id,
            shares=shares,
            total_renewed=total,
        )
        return RenewalRecord(
            renew_cycle_id=cycle.id,
            horse_id=cycle.horse_id,
            shares=shares,
            total_renewed=total,
        )
