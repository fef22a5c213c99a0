from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.promotions import Promotion
from paddock.economy.basket.types import PromotionIssue
from paddock.economy.promotions.evaluation import qualification_from_ranking
from paddock.economy.promotions.service import PromotionService
from paddock.economy.promotions.types import Qualifier

logger = structlog.get_logger(__name__)


def classify_promotion(
    promotion: Promotion,
    ranked: Sequence[Qualifier],
    *,
    user_id: int,
    planned_qty: int,
) -> PromotionIssue | None:
    horse_id = promotion.horse_id
    current = qualification_from_ranking(ranked, user_id=user_id, quota=promotion.quota)
    if current.qualified:
        return None
    if current.rank is not None:
        return PromotionIssue(horse_id=horse_id, reason="full")
    if min(len(ranked), promotion.quota) >= promotion.quota:
        return PromotionIssue(horse_id=horse_id, reason="full")
    if planned_qty < promotion.min_shares_required:
        return PromotionIssue(
            horse_id=horse_id,
            reason="needs_more",
            needed_additional=promotion.min_shares_required - planned_qty,
        )
    return None


async def verify_promotions(
    session: AsyncSession,
    *,
    user_id: int,
    planned_quantities: Mapping[int, int],
    now_utc: datetime,
) -> list[PromotionIssue]:
    """Re-reads every share horse's promotion ranking from the store."""
    issues: list[PromotionIssue] = []
    for horse_id in sorted(planned_quantities):
        try:
            async with session.begin_nested():
                promotion = await PromotionService.get_active_promotion(
                    session,
                    horse_id=horse_id,
                    now_utc=now_utc,
                )
                if promotion is None:
                    continue
                ranked = await PromotionService.rank(session, promotion=promotion)
        except SQLAlchemyError:
            logger.exception("checkout_promotion_check_failed", horse_id=horse_id, user_id=user_id)
            issues.append(PromotionIssue(horse_id=horse_id, reason="unavailable"))
            continue

        issue = classify_promotion(
            promotion,
            ranked,
            user_id=user_id,
            planned_qty=planned_quantities[horse_id],
        )
        if issue is not None:
            issues.append(issue)
    return issues
