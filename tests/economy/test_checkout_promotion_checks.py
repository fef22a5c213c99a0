from __future__ import annotations

from datetime import datetime, timedelta, timezone

from paddock.db.models.promotions import Promotion
from paddock.economy.basket.types import PromotionIssue
from paddock.economy.basket.verification import classify_promotion
from paddock.economy.promotions.types import Qualifier

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
BUYER = 50


def _promotion(*, quota: int = 2, min_shares_required: int = 3) -> Promotion:
    return Promotion(
        id=1,
        horse_id=7,
        enabled=True,
        quota=quota,
        min_shares_required=min_shares_required,
    )


def _qualifier(user_id: int, offset: int) -> Qualifier:
    return Qualifier(
        user_id=user_id,
        purchase_id=offset,
        qty=3,
        qualified_at=NOW - timedelta(minutes=60 - offset),
    )


def test_small_basket_line_needs_more_shares() -> None:
    issue = classify_promotion(_promotion(), [], user_id=BUYER, planned_qty=2)

    assert issue == PromotionIssue(horse_id=7, reason="needs_more", needed_additional=1)


def test_large_enough_line_with_places_left_is_fine() -> None:
    issue = classify_promotion(_promotion(), [_qualifier(1, 1)], user_id=BUYER, planned_qty=3)

    assert issue is None


def test_promotion_filled_by_others_is_full() -> None:
    ranked = [_qualifier(1, 1), _qualifier(2, 2)]

    issue = classify_promotion(_promotion(), ranked, user_id=BUYER, planned_qty=5)

    assert issue == PromotionIssue(horse_id=7, reason="full")


def test_already_qualified_buyer_has_no_issue() -> None:
    ranked = [_qualifier(BUYER, 1), _qualifier(2, 2)]

    assert classify_promotion(_promotion(), ranked, user_id=BUYER, planned_qty=1) is None


def test_buyer_ranked_past_quota_is_full() -> None:
    ranked = [_qualifier(1, 1), _qualifier(2, 2), _qualifier(BUYER, 3)]

    issue = classify_promotion(_promotion(), ranked, user_id=BUYER, planned_qty=5)

    assert issue is not None
    assert issue.reason == "full"
