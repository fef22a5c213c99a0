from __future__ import annotations

from datetime import datetime, timezone

import pytest

from paddock.db.models.promotions import Promotion
from paddock.economy.promotions.labels import (
    default_promotion_label,
    normalize_promotion_label,
    promotion_label,
)


def _promotion(*, label: str | None = None, start_at: datetime | None = None) -> Promotion:
    return Promotion(
        id=1,
        horse_id=1,
        enabled=True,
        quota=10,
        min_shares_required=2,
        start_at=start_at,
        end_at=None,
        label=label,
    )


def test_default_label_uses_first_without_start() -> None:
    assert default_promotion_label(_promotion()) == "First 10 who buy 2 or more shares"


def test_default_label_uses_next_with_start() -> None:
    promotion = _promotion(start_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    assert default_promotion_label(promotion) == "Next 10 who buy 2 or more shares"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("First 5 who buy ≥2 shares", "First 5 who buy 2 or more shares"),
        ("First 5 who buy 2 shares", "First 5 who buy 2 or more shares"),
        ("First 3 who buy 2", "First 3 who buy 2 or more shares"),
        ("Bonus for 2+ shares", "Bonus for 2 or more shares"),
        ("First 4 who buy 3 or more shares", "First 4 who buy 3 or more shares"),
        ("First 5 who buy ≥2 or more shares", "First 5 who buy 2 or more shares"),
        ("Next 2 who buy 4+ shares or more", "Next 2 who buy 4 or more"),
    ],
)
def test_normalize_label_rewrites_shorthand(raw: str, expected: str) -> None:
    assert normalize_promotion_label(raw, fallback="fallback") == expected


def test_blank_label_falls_back_to_default() -> None:
    assert promotion_label(_promotion(label="   ")) == "First 10 who buy 2 or more shares"
