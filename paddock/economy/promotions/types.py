from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

DisplayStatus = Literal["none", "active", "full", "unavailable"]


@dataclass(frozen=True, slots=True)
class PurchaseEvent:
    purchase_id: int
    user_id: int
    qty: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Qualifier:
    user_id: int
    purchase_id: int
    qty: int
    qualified_at: datetime


@dataclass(frozen=True, slots=True)
class PromotionEvaluation:
    claimed: int
    remaining: int
    active: bool
    qualifiers: tuple[Qualifier, ...]


@dataclass(frozen=True, slots=True)
class UserQualification:
    qualified: bool
    rank: int | None


@dataclass(slots=True)
class PromotionDisplay:
    status: DisplayStatus
    promotion_id: int | None = None
    label: str | None = None
    reward: str | None = None
    quota: int | None = None
    min_shares_required: int | None = None
    claimed: int | None = None
    remaining: int | None = None
