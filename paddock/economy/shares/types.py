from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ShareAvailability:
    horse_id: int
    total_shares: int
    sold_shares: int
    remaining_shares: int
    percent_sold: int


@dataclass(frozen=True, slots=True)
class SharePurchaseResult:
    purchase_id: int
    horse_id: int
    qty: int
    unit_price_pence: int
    owned_shares: int
    remaining_shares: int


@dataclass(frozen=True, slots=True)
class HorseListing:
    horse_id: int
    name: str
    slug: str
    trainer: str | None
    share_price_pence: int | None
    availability: ShareAvailability


@dataclass(frozen=True, slots=True)
class Holding:
    horse_id: int
    horse_name: str
    shares: int
    renewed_at: datetime | None
