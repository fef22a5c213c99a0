from __future__ import annotations

from paddock.economy.basket.types import PromotionIssue


class BasketError(Exception):
    pass


class UnknownItemTypeError(BasketError):
    pass


class InvalidQuantityError(BasketError):
    pass


class InvalidPriceError(BasketError):
    pass


class BasketTargetNotFoundError(BasketError):
    pass


class BasketLineNotFoundError(BasketError):
    pass


class BasketUserNotFoundError(BasketError):
    pass


class EmptyBasketError(BasketError):
    pass


class PromotionEligibilityChangedError(BasketError):
    def __init__(self, issues: list[PromotionIssue]) -> None:
        super().__init__(f"{len(issues)} promotion issue(s) need confirmation")
        self.issues = issues
