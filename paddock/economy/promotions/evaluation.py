"""First-N-buyers promotion arithmetic.

Only single-order quantity counts towards ``min_shares_required``; cumulative
holdings never do. Purchases are replayed in (created_at, purchase_id) order and
each user is ranked by their first qualifying purchase.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from paddock.db.models.promotions import Promotion
from paddock.economy.promotions.types import (
    PromotionEvaluation,
    PurchaseEvent,
    Qualifier,
    UserQualification,
)


def is_within_window(promotion: Promotion, moment: datetime) -> bool:
    if promotion.start_at is not None and moment < promotion.start_at:
        return False
    if promotion.end_at is not None and moment > promotion.end_at:
        return False
    return True


def is_promotion_active(promotion: Promotion, *, now_utc: datetime) -> bool:
    return (
        bool(promotion.enabled)
        and promotion.quota > 0
        and promotion.min_shares_required > 0
        and is_within_window(promotion, now_utc)
    )


def pick_active_promotion(
    promotions: Iterable[Promotion],
    *,
    now_utc: datetime,
) -> Promotion | None:
    active = [promotion for promotion in promotions if is_promotion_active(promotion, now_utc=now_utc)]
    if not active:
        return None
    return min(active, key=lambda promotion: promotion.id)


def rank_qualifiers(
    promotion: Promotion,
    purchases: Iterable[PurchaseEvent],
    *,
    as_of: datetime | None = None,
) -> list[Qualifier]:
    ordered = sorted(purchases, key=lambda event: (event.created_at, event.purchase_id))
    seen_users: set[int] = set()
    qualifiers: list[Qualifier] = []
    for event in ordered:
        if as_of is not None and event.created_at > as_of:
            break
        if event.qty < promotion.min_shares_required:
            continue
        if not is_within_window(promotion, event.created_at):
            continue
        if event.user_id in seen_users:
            continue
        seen_users.add(event.user_id)
        qualifiers.append(
            Qualifier(
                user_id=event.user_id,
                purchase_id=event.purchase_id,
                qty=event.qty,
                qualified_at=event.created_at,
            )
        )
    return qualifiers


def evaluate_promotion(
    promotion: Promotion,
    purchases: Iterable[PurchaseEvent],
    *,
    now_utc: datetime,
) -> PromotionEvaluation:
    quota = max(0, promotion.quota)
    ranked = rank_qualifiers(promotion, purchases)
    capped = tuple(ranked[:quota])
    claimed = len(capped)
    remaining = max(0, quota - claimed)
    return PromotionEvaluation(
        claimed=claimed,
        remaining=remaining,
        active=remaining > 0 and is_promotion_active(promotion, now_utc=now_utc),
        qualifiers=capped,
    )


def user_qualification(
    promotion: Promotion,
    purchases: Iterable[PurchaseEvent],
    *,
    user_id: int,
    as_of: datetime | None = None,
) -> UserQualification:
    ranked = rank_qualifiers(promotion, purchases, as_of=as_of)
    return qualification_from_ranking(ranked, user_id=user_id, quota=promotion.quota)


def qualification_from_ranking(
    ranked: Sequence[Qualifier],
    *,
    user_id: int,
    quota: int,
) -> UserQualification:
    for position, qualifier in enumerate(ranked, start=1):
        if qualifier.user_id == user_id:
            return UserQualification(qualified=position <= quota, rank=position)
    return UserQualification(qualified=False, rank=None)
