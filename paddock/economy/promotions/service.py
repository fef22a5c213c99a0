from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.promotions import Promotion
from paddock.db.repo.promotions_repo import PromotionsRepo
from paddock.db.repo.purchases_repo import PurchasesRepo
from paddock.db.session import SessionLocal
from paddock.economy.promotions.errors import (
    PromotionNotExportableError,
    PromotionNotFoundError,
)
from paddock.economy.promotions.evaluation import (
    evaluate_promotion,
    pick_active_promotion,
    qualification_from_ranking,
    rank_qualifiers,
)
from paddock.economy.promotions.labels import promotion_label
from paddock.economy.promotions.types import (
    PromotionDisplay,
    PromotionEvaluation,
    PurchaseEvent,
    Qualifier,
    UserQualification,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class QualifierExportRow:
    email: str
    user_id: int
    horse_id: int
    qualified_at: datetime


class PromotionService:
    @staticmethod
    async def get_active_promotion(
        session: AsyncSession,
        *,
        horse_id: int,
        now_utc: datetime,
    ) -> Promotion | None:
        promotions = await PromotionsRepo.list_for_horse(session, horse_id)
        return pick_active_promotion(promotions, now_utc=now_utc)

    @staticmethod
    async def _load_events(session: AsyncSession, *, promotion: Promotion) -> list[PurchaseEvent]:
        return await PurchasesRepo.list_events_for_horse(
            session,
            horse_id=promotion.horse_id,
            min_qty=max(1, promotion.min_shares_required),
            since_utc=promotion.start_at,
            until_utc=promotion.end_at,
        )

    @staticmethod
    async def rank(session: AsyncSession, *, promotion: Promotion) -> list[Qualifier]:
        events = await PromotionService._load_events(session, promotion=promotion)
        return rank_qualifiers(promotion, events)

    @staticmethod
    async def evaluate(
        session: AsyncSession,
        *,
        promotion: Promotion,
        now_utc: datetime,
    ) -> PromotionEvaluation:
        events = await PromotionService._load_events(session, promotion=promotion)
        return evaluate_promotion(promotion, events, now_utc=now_utc)

    @staticmethod
    async def user_qualifies(
        session: AsyncSession,
        *,
        user_id: int,
        promotion: Promotion,
    ) -> UserQualification:
        ranked = await PromotionService.rank(session, promotion=promotion)
        return qualification_from_ranking(ranked, user_id=user_id, quota=promotion.quota)

    @staticmethod
    async def get_display_status(*, horse_id: int, now_utc: datetime) -> PromotionDisplay:
        try:
            async with SessionLocal.begin() as session:
                promotion = await PromotionService.get_active_promotion(
                    session,
                    horse_id=horse_id,
                    now_utc=now_utc,
                )
                if promotion is None:
                    return PromotionDisplay(status="none")
                evaluation = await PromotionService.evaluate(
                    session,
                    promotion=promotion,
                    now_utc=now_utc,
                )
        except SQLAlchemyError:
            logger.exception("promotion_display_unavailable", horse_id=horse_id)
            return PromotionDisplay(status="unavailable")

        return PromotionDisplay(
            status="active" if evaluation.active else "full",
            promotion_id=promotion.id,
            label=promotion_label(promotion),
            reward=promotion.reward or "Bonus reward",
            quota=promotion.quota,
            min_shares_required=promotion.min_shares_required,
            claimed=evaluation.claimed,
            remaining=evaluation.remaining,
        )

    @staticmethod
    async def list_qualifiers_for_export(
        session: AsyncSession,
        *,
        promotion_id: int,
        now_utc: datetime,
    ) -> list[QualifierExportRow]:
        promotion = await PromotionsRepo.get_by_id(session, promotion_id)
        if promotion is None:
            raise PromotionNotFoundError
        if promotion.quota <= 0 or promotion.min_shares_required <= 0:
            raise PromotionNotExportableError

        evaluation = await PromotionService.evaluate(session, promotion=promotion, now_utc=now_utc)
        emails = await PurchasesRepo.map_user_emails(
            session,
            [qualifier.user_id for qualifier in evaluation.qualifiers],
        )
        return [
            QualifierExportRow(
                email=emails.get(qualifier.user_id, ""),
                user_id=qualifier.user_id,
                horse_id=promotion.horse_id,
                qualified_at=qualifier.qualified_at,
            )
            for qualifier in evaluation.qualifiers
        ]
