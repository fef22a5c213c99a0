from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from paddock.api.routes.access import require_user_id
from paddock.core.money import MAX_SHARE_LINE_QTY
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.users_repo import UsersRepo
from paddock.db.session import SessionLocal
from paddock.economy.promotions.service import PromotionService
from paddock.economy.promotions.types import PromotionDisplay
from paddock.economy.shares.errors import (
    HorseNotFoundError,
    InvalidShareQuantityError,
    SharesUnavailableError,
)
from paddock.economy.shares.service import ShareService
from paddock.workers.enqueue import enqueue_task
from paddock.workers.tasks.notifications import send_checkout_emails_task

router = APIRouter(tags=["horses"])


class AvailabilityResponse(BaseModel):
    horse_id: int
    total_shares: int
    sold_shares: int
    remaining_shares: int
    percent_sold: int


class HorseListingResponse(BaseModel):
    id: int
    name: str
    slug: str
    trainer: str | None = None
    share_price_pence: int | None = None
    total_shares: int
    sold_shares: int
    remaining_shares: int
    percent_sold: int


class HorseListResponse(BaseModel):
    horses: list[HorseListingResponse]


class HoldingResponse(BaseModel):
    horse_id: int
    horse_name: str
    shares: int
    renewed_at: datetime | None = None


class HoldingsResponse(BaseModel):
    holdings: list[HoldingResponse]
    total_shares: int


class PromotionDisplayResponse(BaseModel):
    status: str
    promotion_id: int | None = None
    label: str | None = None
    reward: str | None = None
    quota: int | None = None
    min_shares_required: int | None = None
    claimed: int | None = None
    remaining: int | None = None


class DirectPurchaseRequest(BaseModel):
    qty: int = Field(ge=1, le=MAX_SHARE_LINE_QTY)


class DirectPurchaseResponse(BaseModel):
    purchase_id: int
    horse_id: int
    qty: int
    unit_price_pence: int
    total_pence: int
    owned_shares: int
    remaining_shares: int


def display_as_response(display: PromotionDisplay) -> PromotionDisplayResponse:
    return PromotionDisplayResponse(
        status=display.status,
        promotion_id=display.promotion_id,
        label=display.label,
        reward=display.reward,
        quota=display.quota,
        min_shares_required=display.min_shares_required,
        claimed=display.claimed,
        remaining=display.remaining,
    )


@router.get("/horses", response_model=HorseListResponse)
async def list_horses() -> HorseListResponse:
    async with SessionLocal.begin() as session:
        listings = await ShareService.list_horses(session)

    return HorseListResponse(
        horses=[
            HorseListingResponse(
                id=listing.horse_id,
                name=listing.name,
                slug=listing.slug,
                trainer=listing.trainer,
                share_price_pence=listing.share_price_pence,
                total_shares=listing.availability.total_shares,
                sold_shares=listing.availability.sold_shares,
                remaining_shares=listing.availability.remaining_shares,
                percent_sold=listing.availability.percent_sold,
            )
            for listing in listings
        ]
    )


@router.get("/me/ownerships", response_model=HoldingsResponse)
async def list_my_ownerships(request: Request) -> HoldingsResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        holdings = await ShareService.list_holdings(session, user_id=user_id)

    return HoldingsResponse(
        holdings=[
            HoldingResponse(
                horse_id=holding.horse_id,
                horse_name=holding.horse_name,
                shares=holding.shares,
                renewed_at=holding.renewed_at,
            )
            for holding in holdings
        ],
        total_shares=sum(holding.shares for holding in holdings),
    )


@router.get("/horses/{horse_id}/availability", response_model=AvailabilityResponse)
async def get_availability(horse_id: int) -> AvailabilityResponse:
    try:
        async with SessionLocal.begin() as session:
            availability = await ShareService.get_availability(session, horse_id=horse_id)
    except HorseNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_HORSE_NOT_FOUND"}) from exc

    return AvailabilityResponse(
        horse_id=availability.horse_id,
        total_shares=availability.total_shares,
        sold_shares=availability.sold_shares,
        remaining_shares=availability.remaining_shares,
        percent_sold=availability.percent_sold,
    )


@router.get("/horses/{horse_id}/promotion", response_model=PromotionDisplayResponse)
async def get_promotion_display(horse_id: int) -> PromotionDisplayResponse:
    display = await PromotionService.get_display_status(
        horse_id=horse_id,
        now_utc=datetime.now(timezone.utc),
    )
    return display_as_response(display)


@router.post("/horses/{horse_id}/purchase", response_model=DirectPurchaseResponse)
async def buy_shares(
    horse_id: int,
    payload: DirectPurchaseRequest,
    request: Request,
) -> DirectPurchaseResponse:
    user_id = require_user_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            user = await UsersRepo.get_by_id(session, user_id)
            if user is None:
                raise HTTPException(status_code=404, detail={"code": "E_USER_NOT_FOUND"})
            result = await ShareService.buy_direct(
                session,
                user_id=user_id,
                horse_id=horse_id,
                qty=payload.qty,
                now_utc=now_utc,
            )
            horse = await HorsesRepo.get_by_id(session, horse_id)
    except HorseNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_HORSE_NOT_FOUND"}) from exc
    except InvalidShareQuantityError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_INVALID_QUANTITY"}) from exc
    except SharesUnavailableError as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "code": "E_SOLD_OUT" if exc.sold_out else "E_SHARES_UNAVAILABLE",
                "horse_id": exc.horse_id,
                "remaining": exc.remaining,
            },
        ) from exc

    total = result.unit_price_pence * result.qty
    await enqueue_task(
        send_checkout_emails_task,
        event="direct_purchase_email",
        payload={
            "cart_id": None,
            "user_id": user_id,
            "email": user.email,
            "name": user.full_name,
            "subtotal_pence": total,
            "wallet_used_pence": 0,
            "total_due_pence": total,
            "lines": [
                {
                    "item_type": "share",
                    "horse_id": horse_id,
                    "horse_name": horse.name if horse is not None else "",
                    "qty": result.qty,
                    "unit_price_pence": result.unit_price_pence,
                    "line_total_pence": total,
                    "term_label": None,
                }
            ],
        },
    )
    return DirectPurchaseResponse(
        purchase_id=result.purchase_id,
        horse_id=result.horse_id,
        qty=result.qty,
        unit_price_pence=result.unit_price_pence,
        total_pence=total,
        owned_shares=result.owned_shares,
        remaining_shares=result.remaining_shares,
    )
