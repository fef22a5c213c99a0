from __future__ import annotations

import math

MAX_SHARE_LINE_QTY = 100
MAX_RENEWAL_LINE_QTY = 1000


def is_valid_price_pence(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value > 0


def format_pence(amount_pence: int) -> str:
    sign = "-" if amount_pence < 0 else ""
    pounds, pence = divmod(abs(int(amount_pence)), 100)
    return f"{sign}£{pounds:,}.{pence:02d}"
