from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from paddock.db.models.promotions import Promotion
from paddock.economy.promotions.evaluation import (
    evaluate_promotion,
    is_promotion_active,
    pick_active_promotion,
    rank_qualifiers,
    user_qualification,
)
from paddock.economy.promotions.types import PurchaseEvent

UTC = timezone.utc
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
USER_A, USER_B, USER_C = 101, 102, 103


def _promotion(**overrides: object) -> Promotion:
    values: dict[str, object] = {
        "id": 1,
        "horse_id": 7,
        "enabled": True,
        "quota": 2,
        "min_shares_required": 3,
        "start_at": None,
        "end_at": None,
        "label": None,
        "reward": None,
    }
    values.update(overrides)
    return Promotion(**values)


def _event(purchase_id: int, user_id: int, qty: int, minutes: int) -> PurchaseEvent:
    return PurchaseEvent(
        purchase_id=purchase_id,
        user_id=user_id,
        qty=qty,
        created_at=NOW - timedelta(hours=1) + timedelta(minutes=minutes),
    )


def _scenario_events() -> list[PurchaseEvent]:
    return [
        _event(1, USER_A, 2, 0),
        _event(2, USER_B, 3, 1),
        _event(3, USER_A, 3, 2),
        _event(4, USER_C, 5, 3),
    ]


def test_first_n_buyers_claims_quota_in_purchase_order() -> None:
    promotion = _promotion()

    evaluation = evaluate_promotion(promotion, _scenario_events(), now_utc=NOW)

    assert evaluation.claimed == 2
    assert evaluation.remaining == 0
    assert evaluation.active is False
    assert [qualifier.user_id for qualifier in evaluation.qualifiers] == [USER_B, USER_A]
    assert evaluation.qualifiers[1].purchase_id == 3


def test_user_after_quota_is_ranked_but_not_qualified() -> None:
    promotion = _promotion()
    events = _scenario_events()

    assert user_qualification(promotion, events, user_id=USER_B).qualified is True
    assert user_qualification(promotion, events, user_id=USER_A).rank == 2
    late = user_qualification(promotion, events, user_id=USER_C)
    assert late.qualified is False
    assert late.rank == 3


def test_user_without_qualifying_purchase_has_no_rank() -> None:
    promotion = _promotion()
    events = [_event(1, USER_A, 2, 0)]

    result = user_qualification(promotion, events, user_id=USER_A)

    assert result.qualified is False
    assert result.rank is None


def test_cumulative_small_purchases_never_qualify() -> None:
    promotion = _promotion(min_shares_required=3)
    events = [_event(1, USER_A, 1, 0), _event(2, USER_A, 1, 1), _event(3, USER_A, 1, 2)]

    assert rank_qualifiers(promotion, events) == []


def test_ties_on_timestamp_are_broken_by_purchase_id() -> None:
    promotion = _promotion(quota=1)
    moment = NOW - timedelta(minutes=5)
    events = [
        PurchaseEvent(purchase_id=9, user_id=USER_A, qty=3, created_at=moment),
        PurchaseEvent(purchase_id=4, user_id=USER_B, qty=3, created_at=moment),
    ]

    evaluation = evaluate_promotion(promotion, events, now_utc=NOW)

    assert [qualifier.user_id for qualifier in evaluation.qualifiers] == [USER_B]


def test_purchases_outside_window_are_ignored() -> None:
    promotion = _promotion(start_at=NOW - timedelta(minutes=30), end_at=NOW)
    events = [
        PurchaseEvent(purchase_id=1, user_id=USER_A, qty=5, created_at=NOW - timedelta(hours=2)),
        PurchaseEvent(purchase_id=2, user_id=USER_B, qty=5, created_at=NOW - timedelta(minutes=10)),
        PurchaseEvent(purchase_id=3, user_id=USER_C, qty=5, created_at=NOW + timedelta(minutes=1)),
    ]

    ranked = rank_qualifiers(promotion, events)

    assert [qualifier.user_id for qualifier in ranked] == [USER_B]


def test_window_bounds_are_inclusive() -> None:
    promotion = _promotion(start_at=NOW, end_at=NOW)

    assert is_promotion_active(promotion, now_utc=NOW) is True
    assert is_promotion_active(promotion, now_utc=NOW + timedelta(seconds=1)) is False


def test_promotion_inactive_when_disabled_or_not_configured() -> None:
    assert is_promotion_active(_promotion(enabled=False), now_utc=NOW) is False
    assert is_promotion_active(_promotion(quota=0), now_utc=NOW) is False
    assert is_promotion_active(_promotion(min_shares_required=0), now_utc=NOW) is False


def test_pick_active_promotion_prefers_lowest_id() -> None:
    promotions = [
        _promotion(id=5),
        _promotion(id=3),
        _promotion(id=1, enabled=False),
    ]

    picked = pick_active_promotion(promotions, now_utc=NOW)

    assert picked is not None
    assert picked.id == 3
    assert pick_active_promotion([], now_utc=NOW) is None


def test_qualified_count_never_exceeds_quota_for_random_histories() -> None:
    rng = random.Random(20260501)
    for _ in range(200):
        quota = rng.randint(1, 5)
        promotion = _promotion(quota=quota, min_shares_required=rng.randint(1, 4))
        events = [
            _event(index, rng.randint(1, 8), rng.randint(1, 6), rng.randint(0, 50))
            for index in range(1, rng.randint(1, 30))
        ]
        qualified_users = {
            user_id
            for user_id in range(1, 9)
            if user_qualification(promotion, events, user_id=user_id).qualified
        }
        assert len(qualified_users) <= quota


def test_qualification_survives_later_purchases() -> None:
    promotion = _promotion(quota=2)
    history = _scenario_events()[:2]
    assert user_qualification(promotion, history, user_id=USER_B).qualified is True

    later = history + [_event(10, USER_C, 10, 30), _event(11, 104, 3, 31), _event(12, USER_B, 1, 32)]

    assert user_qualification(promotion, later, user_id=USER_B).qualified is True


def test_as_of_excludes_later_purchases() -> None:
    promotion = _promotion()
    events = _scenario_events()
    cutoff = events[1].created_at

    ranked = rank_qualifiers(promotion, events, as_of=cutoff)

    assert [qualifier.user_id for qualifier in ranked] == [USER_B]
