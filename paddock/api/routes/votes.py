from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from paddock.api.routes.access import assert_admin_access, require_user_id
from paddock.db.models.votes import Vote
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.session import SessionLocal
from paddock.engagement.votes.errors import (
    AlreadyVotedError,
    VoteClosedError,
    VoteError,
    VoteNotEligibleError,
    VoteNotFoundError,
    VoteOptionNotFoundError,
    VoteResultsNotAvailableError,
    VoteValidationError,
)
from paddock.engagement.votes.service import VoteService
from paddock.engagement.votes.types import MAX_VOTE_OPTIONS, MIN_VOTE_OPTIONS, VoteTally

router = APIRouter(tags=["votes"])

VOTE_ERROR_RESPONSES: tuple[tuple[type[VoteError], int, str], ...] = (
    (VoteNotFoundError, 404, "E_VOTE_NOT_FOUND"),
    (VoteValidationError, 422, "E_VOTE_INVALID"),
    (VoteClosedError, 409, "E_VOTE_CLOSED"),
    (VoteNotEligibleError, 403, "E_VOTE_NOT_ELIGIBLE"),
    (VoteOptionNotFoundError, 422, "E_OPTION_NOT_FOUND"),
    (AlreadyVotedError, 409, "E_ALREADY_VOTED"),
    (VoteResultsNotAvailableError, 409, "E_RESULTS_NOT_AVAILABLE"),
)


class VoteCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    options: list[str] = Field(min_length=MIN_VOTE_OPTIONS, max_length=MAX_VOTE_OPTIONS)
    horse_id: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=4000)
    cutoff_at: datetime | None = None


class VoteResponse(BaseModel):
    id: int
    title: str
    horse_id: int | None = None
    cutoff_at: datetime | None = None
    status: str


class VoteStatusUpdateRequest(BaseModel):
    status: Literal["open", "closed"]


class VoteCastRequest(BaseModel):
    option_id: int = Field(gt=0)


class OptionCountResponse(BaseModel):
    option_id: int
    label: str
    count: int


class VoteTallyResponse(BaseModel):
    vote_id: int
    total_responses: int
    options: list[OptionCountResponse]
    winners: list[OptionCountResponse]


class VoteChoiceResponse(BaseModel):
    option_id: int
    label: str


class OpenVoteResponse(BaseModel):
    id: int
    horse_id: int | None = None
    title: str
    description: str | None = None
    cutoff_at: datetime | None = None
    options: list[VoteChoiceResponse]
    my_option_id: int | None = None


class OpenVotesResponse(BaseModel):
    votes: list[OpenVoteResponse]


def _as_http_error(exc: VoteError) -> HTTPException:
    for error_type, status_code, code in VOTE_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": code})
    return HTTPException(status_code=400, detail={"code": "E_VOTE"})


def _vote_as_response(vote: Vote) -> VoteResponse:
    return VoteResponse(
        id=vote.id,
        title=vote.title,
        horse_id=vote.horse_id,
        cutoff_at=vote.cutoff_at,
        status=vote.status,
    )


def _tally_as_response(tally: VoteTally) -> VoteTallyResponse:
    return VoteTallyResponse(
        vote_id=tally.vote_id,
        total_responses=tally.total_responses,
        options=[
            OptionCountResponse(option_id=item.option_id, label=item.label, count=item.count)
            for item in tally.option_counts
        ],
        winners=[
            OptionCountResponse(option_id=item.option_id, label=item.label, count=item.count)
            for item in tally.winners
        ],
    )


@router.get("/votes", response_model=OpenVotesResponse)
async def list_open_votes(request: Request) -> OpenVotesResponse:
    user_id = require_user_id(request)
    async with SessionLocal.begin() as session:
        votes = await VoteService.list_open_for_user(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )

    return OpenVotesResponse(
        votes=[
            OpenVoteResponse(
                id=vote.vote_id,
                horse_id=vote.horse_id,
                title=vote.title,
                description=vote.description,
                cutoff_at=vote.cutoff_at,
                options=[
                    VoteChoiceResponse(option_id=choice.option_id, label=choice.label)
                    for choice in vote.options
                ],
                my_option_id=vote.my_option_id,
            )
            for vote in votes
        ]
    )


@router.post("/votes/{vote_id}/responses")
async def cast_vote(vote_id: int, payload: VoteCastRequest, request: Request) -> dict[str, bool]:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            await VoteService.cast(
                session,
                vote_id=vote_id,
                option_id=payload.option_id,
                user_id=user_id,
                now_utc=datetime.now(timezone.utc),
            )
    except VoteError as exc:
        raise _as_http_error(exc) from exc

    return {"ok": True}


@router.get("/votes/{vote_id}/results", response_model=VoteTallyResponse)
async def get_vote_results(vote_id: int, request: Request) -> VoteTallyResponse:
    user_id = require_user_id(request)
    try:
        async with SessionLocal.begin() as session:
            if not await OwnershipsRepo.user_owns_any(session, user_id=user_id):
                raise VoteNotEligibleError
            tally = await VoteService.tally(session, vote_id=vote_id, require_closed=True)
    except VoteError as exc:
        raise _as_http_error(exc) from exc

    return _tally_as_response(tally)


@router.post("/admin/votes", response_model=VoteResponse)
async def create_vote(payload: VoteCreateRequest, request: Request) -> VoteResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            vote = await VoteService.create_vote(
                session,
                title=payload.title,
                option_labels=payload.options,
                horse_id=payload.horse_id,
                description=payload.description,
                cutoff_at=payload.cutoff_at,
                now_utc=datetime.now(timezone.utc),
            )
            response = _vote_as_response(vote)
    except VoteError as exc:
        raise _as_http_error(exc) from exc

    return response


@router.post("/admin/votes/{vote_id}/status", response_model=VoteResponse)
async def update_vote_status(
    vote_id: int,
    payload: VoteStatusUpdateRequest,
    request: Request,
) -> VoteResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            vote = await VoteService.set_status(session, vote_id=vote_id, status=payload.status)
            response = _vote_as_response(vote)
    except VoteError as exc:
        raise _as_http_error(exc) from exc

    return response


@router.get("/admin/votes/{vote_id}/results", response_model=VoteTallyResponse)
async def get_vote_results_admin(vote_id: int, request: Request) -> VoteTallyResponse:
    assert_admin_access(request)
    try:
        async with SessionLocal.begin() as session:
            tally = await VoteService.tally(session, vote_id=vote_id)
    except VoteError as exc:
        raise _as_http_error(exc) from exc

    return _tally_as_response(tally)
