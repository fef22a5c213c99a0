from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from paddock.api.routes.access import assert_admin_access
from paddock.db.session import SessionLocal
from paddock.economy.shares.errors import HorseNotFoundError
from paddock.economy.wallet.errors import InvalidWalletAmountError, NoOwnersError
from paddock.economy.wallet.service import WalletService

router = APIRouter(tags=["admin", "wallet"])


class RaceWinningsRequest(BaseModel):
    horse_id: int = Field(gt=0)
    per_share_pence: int = Field(gt=0)
    memo: str | None = Field(default=None, max_length=256)


class RaceWinningsCreditResponse(BaseModel):
    user_id: int
    shares: int
    amount_pence: int


class RaceWinningsResponse(BaseModel):
    horse_id: int
    owners_credited: int
    total_pence: int
    credits: list[RaceWinningsCreditResponse]


@router.post("/admin/wallet/race-winnings", response_model=RaceWinningsResponse)
async def credit_race_winnings(payload: RaceWinningsRequest, request: Request) -> RaceWinningsResponse:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            credits = await WalletService.credit_race_winnings(
                session,
                horse_id=payload.horse_id,
                per_share_pence=payload.per_share_pence,
                memo=payload.memo,
                now_utc=datetime.now(timezone.utc),
            )
    except HorseNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_HORSE_NOT_FOUND"}) from exc
    except NoOwnersError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_NO_OWNERS"}) from exc
    except InvalidWalletAmountError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_INVALID_AMOUNT"}) from exc

    return RaceWinningsResponse(
        horse_id=payload.horse_id,
        owners_credited=len(credits),
        total_pence=sum(credit.amount_pence for credit in credits),
        credits=[
            RaceWinningsCreditResponse(
                user_id=credit.user_id,
                shares=credit.shares,
                amount_pence=credit.amount_pence,
            )
            for credit in credits
        ],
    )
