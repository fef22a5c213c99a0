from __future__ import annotations

from collections.abc import Iterable

from paddock.core.money import MAX_RENEWAL_LINE_QTY, MAX_SHARE_LINE_QTY, is_valid_price_pence
from paddock.db.models.cart_items import CartItem
from paddock.economy.basket.errors import InvalidPriceError, UnknownItemTypeError


def resolve_unit_price(*, authoritative_pence: int | None, fallback_pence: object | None) -> int:
    """Current horse/cycle price wins; the caller's price is used only when none is stored."""
    candidate = authoritative_pence if authoritative_pence is not None else fallback_pence
    if not is_valid_price_pence(candidate):
        raise InvalidPriceError
    resolved = round(candidate)  # type: ignore[arg-type]
    if resolved <= 0:
        raise InvalidPriceError
    return int(resolved)


def max_line_quantity(item_type: str) -> int:
    if item_type == "share":
        return MAX_SHARE_LINE_QTY
    if item_type == "renewal":
        return MAX_RENEWAL_LINE_QTY
    raise UnknownItemTypeError


def merged_quantity(*, existing: int, added: int, maximum: int) -> int:
    return min(existing + added, maximum)


def line_total(item: CartItem) -> int:
    return item.unit_price_pence * item.qty


def basket_subtotal(items: Iterable[CartItem]) -> int:
    return sum(line_total(item) for item in items)


def share_quantities(items: Iterable[CartItem]) -> dict[int, int]:
    quantities: dict[int, int] = {}
    for item in items:
        if item.item_type == "share" and item.horse_id is not None:
            quantities[item.horse_id] = quantities.get(item.horse_id, 0) + item.qty
    return quantities
