from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from paddock.api.routes.access import require_user_id
from paddock.db.repo.wallet_repo import WalletRepo
from paddock.db.session import SessionLocal
from paddock.economy.basket.checkout import CheckoutService
from paddock.economy.basket.errors import (
    BasketError,
    BasketLineNotFoundError,
    BasketTargetNotFoundError,
    BasketUserNotFoundError,
    EmptyBasketError,
    InvalidPriceError,
    InvalidQuantityError,
    PromotionEligibilityChangedError,
    UnknownItemTypeError,
)
from paddock.economy.basket.service import BasketService
from paddock.economy.basket.types import BasketLine, CheckoutReceipt
from paddock.economy.renewals.errors import (
    RenewalCycleClosedError,
    RenewalCycleNotFoundError,
    RenewalError,
    RenewalNotAllowedError,
    RenewalQuantityExceededError,
)
from paddock.economy.shares.errors import HorseNotFoundError, SharesError, SharesUnavailableError
from paddock.economy.wallet.service import WalletService
from paddock.services.emails import receipt_payload
from paddock.workers.enqueue import enqueue_task
from paddock.workers.tasks.notifications import send_checkout_emails_task

router = APIRouter(tags=["basket"])
logger = structlog.get_logger(__name__)


class BasketLineAddRequest(BaseModel):
    item_type: Literal["share", "renewal"]
    target_id: int = Field(gt=0)
    qty: int = Field(default=1, ge=1)
    unit_price_pence: int | None = None


class BasketLineUpdateRequest(BaseModel):
    qty: int = Field(ge=1)


class BasketLineResponse(BaseModel):
    id: int
    item_type: str
    horse_id: int | None = None
    renew_cycle_id: int | None = None
    horse_name: str | None = None
    qty: int
    unit_price_pence: int
    line_total_pence: int


class BasketResponse(BaseModel):
    cart_id: int | None = None
    lines: list[BasketLineResponse]
    subtotal_pence: int
    wallet_balance_pence: int


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_offset_requested: int = Field(default=0, ge=0, alias="walletOffsetRequested")
    confirm_promotion_changes: bool = Field(default=False, alias="confirmPromotionChanges")


class ReceiptLineResponse(BaseModel):
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


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cart_id: int = Field(alias="cartId")
    subtotal: int
    wallet_used: int = Field(alias="walletUsed")
    total_due: int = Field(alias="totalDue")
    lines: list[ReceiptLineResponse]


class WalletTransactionResponse(BaseModel):
    id: int
    type: str
    status: str
    amount_pence: int
    memo: str | None = None
    created_at: datetime


class WalletResponse(BaseModel):
    balance_pence: int
    transactions: list[WalletTransactionResponse]


def _line_as_response(line: BasketLine) -> BasketLineResponse:
    return BasketLineResponse(
        id=line.id,
        item_type=line.item_type,
        horse_id=line.horse_id,
        renew_cycle_id=line.renew_cycle_id,
        horse_name=line.horse_name,
        qty=line.qty,
        unit_price_pence=line.unit_price_pence,
        line_total_pence=line.line_total_pence,
    )


def _receipt_as_response(receipt: CheckoutReceipt) -> CheckoutResponse:
    return CheckoutResponse(
        cart_id=receipt.cart_id,
        subtotal=receipt.subtotal_pence,
        wallet_used=receipt.wallet_used_pence,
        total_due=receipt.total_due_pence,
        lines=[
            ReceiptLineResponse(
                item_type=line.item_type,
                horse_id=line.horse_id,
                horse_name=line.horse_name,
                qty=line.qty,
                unit_price_pence=line.unit_price_pence,
                line_total_pence=line.line_total_pence,
                renew_cycle_id=line.renew_cycle_id,
                term_label=line.term_label,
                promotion_qualified=line.promotion_qualified,
                promotion_rank=line.promotion_rank,
            )
            for line in receipt.lines
        ],
    )


def _as_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PromotionEligibilityChangedError):
        return HTTPException(
            status_code=409,
            detail={
                "code": "E_PROMOTION_CHANGED",
                "issues": [
                    {
                        "horse_id": issue.horse_id,
                        "reason": issue.reason,
                        "needed_additional": issue.needed_additional,
                    }
                    for issue in exc.issues
                ],
            },
        )
    if isinstance(exc, SharesUnavailableError):
        return HTTPException(
            status_code=409,
            detail={
                "code": "E_SOLD_OUT" if exc.sold_out else "E_SHARES_UNAVAILABLE",
                "horse_id": exc.horse_id,
                "remaining": exc.remaining,
            },
        )
    if isinstance(exc, RenewalQuantityExceededError):
        return HTTPException(
            status_code=409,
            detail={"code": "E_RENEWAL_QTY_EXCEEDED", "allowed": exc.allowed},
        )
    if isinstance(exc, EmptyBasketError):
        return HTTPException(status_code=400, detail={"code": "E_EMPTY_BASKET"})
    if isinstance(exc, UnknownItemTypeError):
        return HTTPException(status_code=422, detail={"code": "E_UNKNOWN_ITEM_TYPE"})
    if isinstance(exc, InvalidPriceError):
        return HTTPException(status_code=422, detail={"code": "E_INVALID_PRICE"})
    if isinstance(exc, InvalidQuantityError):
        return HTTPException(status_code=422, detail={"code": "E_INVALID_QUANTITY"})
    if isinstance(exc, (BasketTargetNotFoundError, HorseNotFoundError, RenewalCycleNotFoundError)):
        return HTTPException(status_code=404, detail={"code": "E_TARGET_NOT_FOUND"})
    if isinstance(exc, BasketLineNotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_LINE_NOT_FOUND"})
    if isinstance(exc, BasketUserNotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_USER_NOT_FOUND"})
    if isinstance(exc, RenewalCycleClosedError):
        return HTTPException(status_code=409, detail={"code": "E_RENEWAL_CLOSED"})
    if isinstance(exc, RenewalNotAllowedError):
        return HTTPException(status_code=403, detail={"code": "E_RENEWAL_NOT_ALLOWED"})
    return HTTPException(status_code=400, detail={"code": "E_BASKET"})


@router.get("/basket", response_model=BasketResponse)
async def get_basket(request: Request) -> BasketResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        view = await BasketService.get_basket(session, user_id=user_id)

    return BasketResponse(
        cart_id=view.cart_id,
        lines=[_line_as_response(line) for line in view.lines],
        subtotal_pence=view.subtotal_pence,
        wallet_balance_pence=view.wallet_balance_pence,
    )


@router.post("/basket/lines", response_model=BasketLineResponse)
async def add_basket_line(payload: BasketLineAddRequest, request: Request) -> BasketLineResponse:
    user_id = require_user_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            line = await BasketService.add_line(
                session,
                user_id=user_id,
                item_type=payload.item_type,
                target_id=payload.target_id,
                qty=payload.qty,
                fallback_unit_price_pence=payload.unit_price_pence,
                now_utc=now_utc,
            )
    except (BasketError, SharesError, RenewalError) as exc:
        raise _as_http_error(exc) from exc

    return _line_as_response(line)


@router.patch("/basket/lines/{line_id}", response_model=BasketLineResponse)
async def update_basket_line(
    line_id: int,
    payload: BasketLineUpdateRequest,
    request: Request,
) -> BasketLineResponse:
    user_id = require_user_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            line = await BasketService.update_line_quantity(
                session,
                user_id=user_id,
                line_id=line_id,
                qty=payload.qty,
                now_utc=now_utc,
            )
    except (BasketError, SharesError, RenewalError) as exc:
        raise _as_http_error(exc) from exc

    return _line_as_response(line)


@router.delete("/basket/lines/{line_id}")
async def remove_basket_line(line_id: int, request: Request) -> dict[str, bool]:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            await BasketService.remove_line(session, user_id=user_id, line_id=line_id)
    except BasketError as exc:
        raise _as_http_error(exc) from exc

    return {"ok": True}


@router.post("/checkout", response_model=CheckoutResponse)
async def checkout(payload: CheckoutRequest, request: Request) -> CheckoutResponse:
    user_id = require_user_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            receipt = await CheckoutService.checkout(
                session,
                user_id=user_id,
                wallet_offset_requested_pence=payload.wallet_offset_requested,
                confirm_promotion_changes=payload.confirm_promotion_changes,
                now_utc=now_utc,
            )
    except (BasketError, SharesError, RenewalError) as exc:
        logger.info("checkout_rejected", user_id=user_id, error_type=type(exc).__name__)
        raise _as_http_error(exc) from exc

    await enqueue_task(
        send_checkout_emails_task,
        event="checkout_emails",
        payload=receipt_payload(receipt),
    )
    return _receipt_as_response(receipt)


@router.get("/wallet", response_model=WalletResponse)
async def get_wallet(request: Request) -> WalletResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        balance = await WalletService.get_balance(session, user_id=user_id)
        transactions = await WalletRepo.list_for_user(session, user_id)

    return WalletResponse(
        balance_pence=balance,
        transactions=[
            WalletTransactionResponse(
                id=transaction.id,
                type=transaction.type,
                status=transaction.status,
                amount_pence=transaction.amount_pence,
                memo=transaction.memo,
                created_at=transaction.created_at,
            )
            for transaction in transactions
        ],
    )
