from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.votes import Vote
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.votes_repo import VotesRepo
from paddock.engagement.votes.errors import (
    AlreadyVotedError,
    VoteClosedError,
    VoteNotEligibleError,
    VoteNotFoundError,
    VoteOptionNotFoundError,
    VoteResultsNotAvailableError,
    VoteValidationError,
)
from paddock.engagement.votes.tally import tally_votes
from paddock.engagement.votes.types import (
    MAX_VOTE_OPTIONS,
    MIN_VOTE_OPTIONS,
    OpenVote,
    VoteChoice,
    VoteTally,
)

logger = structlog.get_logger(__name__)

VOTE_STATUSES = ("open", "closed")
OPEN_VOTES_LIMIT = 20


def normalize_option_labels(labels: Sequence[str]) -> list[str]:
    cleaned = [label.strip() for label in labels if label and label.strip()]
    if not MIN_VOTE_OPTIONS <= len(cleaned) <= MAX_VOTE_OPTIONS:
        raise VoteValidationError(
            f"a vote needs between {MIN_VOTE_OPTIONS} and {MAX_VOTE_OPTIONS} options"
        )
    return cleaned


def is_accepting_responses(vote: Vote, *, now_utc: datetime) -> bool:
    if vote.status != "open":
        return False
    return vote.cutoff_at is None or now_utc <= vote.cutoff_at


class VoteService:
    @staticmethod
    async def create_vote(
        session: AsyncSession,
        *,
        title: str,
        option_labels: Sequence[str],
        horse_id: int | None = None,
        description: str | None = None,
        cutoff_at: datetime | None = None,
        now_utc: datetime,
    ) -> Vote:
        if not title.strip():
            raise VoteValidationError("title is required")
        labels = normalize_option_labels(option_labels)
        if horse_id is not None and await HorsesRepo.get_by_id(session, horse_id) is None:
            raise VoteValidationError("horse not found")

        vote, options = await VotesRepo.create(
            session,
            vote=Vote(
                horse_id=horse_id,
                title=title.strip(),
                description=description,
                cutoff_at=cutoff_at,
                status="open",
                created_at=now_utc,
            ),
            option_labels=labels,
        )
        logger.info("vote_created", vote_id=vote.id, horse_id=horse_id, options=len(options))
        return vote

    @staticmethod
    async def set_status(session: AsyncSession, *, vote_id: int, status: str) -> Vote:
        if status not in VOTE_STATUSES:
            raise VoteValidationError("unknown vote status")
        vote = await VotesRepo.get_by_id_for_update(session, vote_id)
        if vote is None:
            raise VoteNotFoundError
        vote.status = status
        await session.flush()
        logger.info("vote_status_changed", vote_id=vote_id, status=status)
        return vote

    @staticmethod
    async def cast(
        session: AsyncSession,
        *,
        vote_id: int,
        option_id: int,
        user_id: int,
        now_utc: datetime,
    ) -> None:
        vote = await VotesRepo.get_by_id(session, vote_id)
        if vote is None:
            raise VoteNotFoundError
        if not is_accepting_responses(vote, now_utc=now_utc):
            raise VoteClosedError

        options = await VotesRepo.list_options(session, vote_id)
        if option_id not in {option.id for option in options}:
            raise VoteOptionNotFoundError

        if vote.horse_id is not None:
            eligible = (
                await OwnershipsRepo.get_user_shares(session, user_id=user_id, horse_id=vote.horse_id)
            ) > 0
        else:
            eligible = await OwnershipsRepo.user_owns_any(session, user_id=user_id)
        if not eligible:
            raise VoteNotEligibleError

        try:
            async with session.begin_nested():
                await VotesRepo.create_response(
                    session,
                    vote_id=vote_id,
                    option_id=option_id,
                    user_id=user_id,
                    now_utc=now_utc,
                )
        except IntegrityError as exc:
            logger.info("vote_response_duplicate", vote_id=vote_id, user_id=user_id)
            raise AlreadyVotedError from exc

        logger.info("vote_cast", vote_id=vote_id, user_id=user_id)

    @staticmethod
    async def tally(session: AsyncSession, *, vote_id: int, require_closed: bool = False) -> VoteTally:
        vote = await VotesRepo.get_by_id(session, vote_id)
        if vote is None:
            raise VoteNotFoundError
        if require_closed and vote.status != "closed":
            raise VoteResultsNotAvailableError

        options = await VotesRepo.list_options(session, vote_id)
        counts = await VotesRepo.count_by_option(session, vote_id)
        return tally_votes(vote_id, [(option.id, option.label) for option in options], counts)

    @staticmethod
    async def list_open_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
        limit: int = OPEN_VOTES_LIMIT,
    ) -> list[OpenVote]:
        ownerships = await OwnershipsRepo.list_for_user(session, user_id)
        if not ownerships:
            return []
        votes = await VotesRepo.list_open_for_horses(
            session,
            horse_ids=[ownership.horse_id for ownership in ownerships],
            now_utc=now_utc,
            limit=limit,
        )
        vote_ids = [vote.id for vote in votes]
        options = await VotesRepo.list_options_for_votes(session, vote_ids)
        choices = await VotesRepo.map_user_choices(session, user_id=user_id, vote_ids=vote_ids)
        return [
            OpenVote(
                vote_id=vote.id,
                horse_id=vote.horse_id,
                title=vote.title,
                description=vote.description,
                cutoff_at=vote.cutoff_at,
                options=[
                    VoteChoice(option_id=option.id, label=option.label)
                    for option in options.get(vote.id, [])
                ],
                my_option_id=choices.get(vote.id),
            )
            for vote in votes
        ]
