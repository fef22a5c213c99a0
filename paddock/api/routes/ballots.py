from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from paddock.api.routes.access import assert_admin_access, require_user_id
from paddock.db.models.ballots import Ballot
from paddock.db.session import SessionLocal
from paddock.engagement.ballots.errors import (
    AlreadyEnteredError,
    BallotAlreadyDrawnError,
    BallotClosedError,
    BallotError,
    BallotNotEligibleError,
    BallotNotFoundError,
    BallotStatusTransitionError,
    BallotStillOpenError,
    BallotValidationError,
)
from paddock.engagement.ballots.service import BallotService
from paddock.engagement.ballots.types import BallotResults

router = APIRouter(tags=["ballots"])

BALLOT_ERROR_RESPONSES: tuple[tuple[type[BallotError], int, str], ...] = (
    (BallotNotFoundError, 404, "E_BALLOT_NOT_FOUND"),
    (BallotValidationError, 422, "E_BALLOT_INVALID"),
    (BallotClosedError, 409, "E_BALLOT_CLOSED"),
    (BallotNotEligibleError, 403, "E_BALLOT_NOT_ELIGIBLE"),
    (AlreadyEnteredError, 409, "E_ALREADY_ENTERED"),
    (BallotAlreadyDrawnError, 409, "E_ALREADY_DRAWN"),
    (BallotStillOpenError, 409, "E_BALLOT_STILL_OPEN"),
    (BallotStatusTransitionError, 409, "E_INVALID_STATUS_TRANSITION"),
)


class BallotCreateRequest(BaseModel):
    ballot_type: Literal["badge", "stable"]
    title: str = Field(min_length=1, max_length=200)
    cutoff_at: datetime
    max_winners: int = Field(ge=1)
    horse_id: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=4000)
    event_date: date | None = None
    racecourse_allocation: int | None = Field(default=None, ge=0)


class BallotResponse(BaseModel):
    id: int
    ballot_type: str
    title: str
    horse_id: int | None = None
    cutoff_at: datetime
    max_winners: int
    racecourse_allocation: int | None = None
    status: str


class BallotStatusUpdateRequest(BaseModel):
    status: Literal["open", "closed"]


class DrawResponse(BaseModel):
    ballot_id: int
    entrants: int
    winners_count: int
    non_winners_count: int


class BallotResultsResponse(BaseModel):
    ballot_id: int
    status: str
    winner_user_ids: list[int]
    unsuccessful_count: int


class UserBallotResultResponse(BaseModel):
    ballot_id: int
    ballot_type: str
    title: str
    event_date: date | None = None
    cutoff_at: datetime
    outcome: str


class UserBallotResultsResponse(BaseModel):
    results: list[UserBallotResultResponse]


class OpenBallotResponse(BaseModel):
    id: int
    horse_id: int | None = None
    ballot_type: str
    title: str
    description: str | None = None
    event_date: date | None = None
    cutoff_at: datetime
    max_winners: int
    entry_count: int
    entered: bool


class OpenBallotsResponse(BaseModel):
    ballots: list[OpenBallotResponse]


class BallotSummaryResponse(BaseModel):
    id: int
    horse_id: int | None = None
    horse_name: str | None = None
    ballot_type: str
    title: str
    event_date: date | None = None
    cutoff_at: datetime
    max_winners: int
    status: str
    entry_count: int


class BallotSummariesResponse(BaseModel):
    ballots: list[BallotSummaryResponse]


def _as_http_error(exc: BallotError) -> HTTPException:
    for error_type, status_code, code in BALLOT_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": code})
    return HTTPException(status_code=400, detail={"code": "E_BALLOT"})


def _ballot_as_response(ballot: Ballot) -> BallotResponse:
    return BallotResponse(
        id=ballot.id,
        ballot_type=ballot.ballot_type,
        title=ballot.title,
        horse_id=ballot.horse_id,
        cutoff_at=ballot.cutoff_at,
        max_winners=ballot.max_winners,
        racecourse_allocation=ballot.racecourse_allocation,
        status=ballot.status,
    )


def _results_as_response(results: BallotResults) -> BallotResultsResponse:
    return BallotResultsResponse(
        ballot_id=results.ballot_id,
        status=results.status,
        winner_user_ids=results.winner_user_ids,
        unsuccessful_count=results.unsuccessful_count,
    )


@router.get("/ballots", response_model=OpenBallotsResponse)
async def list_open_ballots(request: Request) -> OpenBallotsResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        ballots = await BallotService.list_open_for_user(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )

    return OpenBallotsResponse(
        ballots=[
            OpenBallotResponse(
                id=ballot.ballot_id,
                horse_id=ballot.horse_id,
                ballot_type=ballot.ballot_type,
                title=ballot.title,
                description=ballot.description,
                event_date=ballot.event_date,
                cutoff_at=ballot.cutoff_at,
                max_winners=ballot.max_winners,
                entry_count=ballot.entry_count,
                entered=ballot.entered,
            )
            for ballot in ballots
        ]
    )


@router.post("/ballots/{ballot_id}/entries")
async def enter_ballot(ballot_id: int, request: Request) -> dict[str, bool]:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            await BallotService.enter(
                session,
                ballot_id=ballot_id,
                user_id=user_id,
                now_utc=datetime.now(timezone.utc),
            )
    except BallotError as exc:
        raise _as_http_error(exc) from exc

    return {"ok": True}


@router.get("/ballots/results/me", response_model=UserBallotResultsResponse)
async def get_my_ballot_results(request: Request) -> UserBallotResultsResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        results = await BallotService.list_user_results(session, user_id=user_id)

    return UserBallotResultsResponse(
        results=[
            UserBallotResultResponse(
                ballot_id=result.ballot_id,
                ballot_type=result.ballot_type,
                title=result.title,
                event_date=result.event_date,
                cutoff_at=result.cutoff_at,
                outcome=result.outcome,
            )
            for result in results
        ]
    )


@router.get("/admin/ballots", response_model=BallotSummariesResponse)
async def list_ballots_admin(
    request: Request,
    status: Literal["open", "closed", "drawn", "all"] = "all",
) -> BallotSummariesResponse:
    assert_admin_access(request)
    async with SessionLocal.begin() as session:
        summaries = await BallotService.list_for_admin(
            session,
            status=None if status == "all" else status,
        )

    return BallotSummariesResponse(
        ballots=[
            BallotSummaryResponse(
                id=summary.ballot_id,
                horse_id=summary.horse_id,
                horse_name=summary.horse_name,
                ballot_type=summary.ballot_type,
                title=summary.title,
                event_date=summary.event_date,
                cutoff_at=summary.cutoff_at,
                max_winners=summary.max_winners,
                status=summary.status,
                entry_count=summary.entry_count,
            )
            for summary in summaries
        ]
    )


@router.post("/admin/ballots", response_model=BallotResponse)
async def create_ballot(payload: BallotCreateRequest, request: Request) -> BallotResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            ballot = await BallotService.create_ballot(
                session,
                ballot_type=payload.ballot_type,
                title=payload.title,
                cutoff_at=payload.cutoff_at,
                max_winners=payload.max_winners,
                horse_id=payload.horse_id,
                description=payload.description,
                event_date=payload.event_date,
                racecourse_allocation=payload.racecourse_allocation,
                now_utc=datetime.now(timezone.utc),
            )
            response = _ballot_as_response(ballot)
    except BallotError as exc:
        raise _as_http_error(exc) from exc

    return response


@router.post("/admin/ballots/{ballot_id}/status", response_model=BallotResponse)
async def update_ballot_status(
    ballot_id: int,
    payload: BallotStatusUpdateRequest,
    request: Request,
) -> BallotResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            ballot = await BallotService.set_status(session, ballot_id=ballot_id, status=payload.status)
            response = _ballot_as_response(ballot)
    except BallotError as exc:
        raise _as_http_error(exc) from exc

    return response


@router.post("/admin/ballots/{ballot_id}/draw", response_model=DrawResponse)
async def draw_ballot(ballot_id: int, request: Request) -> DrawResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            outcome = await BallotService.run_draw(
                session,
                ballot_id=ballot_id,
                now_utc=datetime.now(timezone.utc),
            )
    except BallotError as exc:
        raise _as_http_error(exc) from exc

    return DrawResponse(
        ballot_id=outcome.ballot_id,
        entrants=outcome.entrants,
        winners_count=outcome.winners_count,
        non_winners_count=outcome.non_winners_count,
    )


@router.get("/admin/ballots/{ballot_id}/results", response_model=BallotResultsResponse)
async def get_ballot_results(ballot_id: int, request: Request) -> BallotResultsResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            results = await BallotService.get_results(session, ballot_id=ballot_id)
    except BallotError as exc:
        raise _as_http_error(exc) from exc

    return _results_as_response(results)
