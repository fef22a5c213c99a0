from __future__ import annotations

import re

from paddock.db.models.promotions import Promotion

_GTE_RE = re.compile(r"≥\s*(\d+)", re.IGNORECASE)
_PLUS_SHARES_RE = re.compile(r"\b(\d+)\+\s*shares?\b", re.IGNORECASE)
_BUY_N_RE = re.compile(r"\bbuy\s+(\d+)(?!\s*or\s+more)\b", re.IGNORECASE)
_BUY_N_OR_MORE_RE = re.compile(r"\b(buy\s+\d+\s+or\s+more)(?!\s+shares)\b", re.IGNORECASE)
_DOUBLE_SHARES_RE = re.compile(r"\bshares\s+shares\b", re.IGNORECASE)
_DUPLICATE_OR_MORE_RE = re.compile(r"\bor more(?:\s+shares)?\s+or more\b", re.IGNORECASE)


def default_promotion_label(promotion: Promotion) -> str:
    lead = "Next" if promotion.start_at is not None else "First"
    return f"{lead} {promotion.quota} who buy {promotion.min_shares_required} or more shares"


def normalize_promotion_label(raw: str | None, *, fallback: str) -> str:
    if not raw or not raw.strip():
        return fallback

    label = _GTE_RE.sub(lambda match: f"{match.group(1)} or more", raw)
    label = _PLUS_SHARES_RE.sub(lambda match: f"{match.group(1)} or more shares", label)
    label = _BUY_N_RE.sub(lambda match: f"buy {match.group(1)} or more", label)
    label = _BUY_N_OR_MORE_RE.sub(lambda match: f"{match.group(1)} shares", label)
    label = _DOUBLE_SHARES_RE.sub("shares", label)
    label = _DUPLICATE_OR_MORE_RE.sub("or more", label)
    return label.strip()


def promotion_label(promotion: Promotion) -> str:
    return normalize_promotion_label(promotion.label, fallback=default_promotion_label(promotion))
