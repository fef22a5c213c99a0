from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ItemType = Literal["share", "renewal"]
PromotionIssueReason = Literal["full", "needs_more", "unavailable"]


@dataclass(frozen=True, slots=True)
class BasketLine:
    id: int
    item_type: str
    horse_id: int | None
    renew_cycle_id: int | None
    qty: int
    unit_price_pence: int
    line_total_pence: int
    horse_name: str | None = None


@dataclass(frozen=True, slots=True)
class BasketView:
    cart_id: int | None
    lines: list[BasketLine]
    subtotal_pence: int
    wallet_balance_pence: int


@dataclass(frozen=True, slots=True)
class PromotionIssue:
    horse_id: int
    reason: PromotionIssueReason
    needed_additional: int | None = None


@dataclass(frozen=True, slots=True)
class ReceiptLine:
    item_type: str
    horse_id: int
    horse_name: str
    qty: int
    unit_price_pence: int
    line_total_pence: int
    renew_cycle_id: int | None = None
    term_label: str | None = None
    promotion_qualified: bool | None = None
    promotion_rank: int | None = None


@dataclass(frozen=True, slots=True)
class CheckoutReceipt:
    cart_id: int
    user_id: int
    email: str
    subtotal_pence: int
    wallet_used_pence: int
    total_due_pence: int
    lines: list[ReceiptLine]
    acknowledged_issues: list[PromotionIssue] = field(default_factory=list)

    @property
    def share_lines(self) -> list[ReceiptLine]:
        return [line for line in self.lines if line.item_type == "share"]

    @property
    def renewal_lines(self) -> list[ReceiptLine]:
        return [line for line in self.lines if line.item_type == "renewal"]
