from __future__ import annotations

import random
from datetime import date, datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.ballots import Ballot
from paddock.db.repo.ballots_repo import BallotsRepo
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.engagement.ballots.draw import plan_draw, winner_slots
from paddock.engagement.ballots.errors import (
    AlreadyEnteredError,
    BallotAlreadyDrawnError,
    BallotClosedError,
    BallotNotEligibleError,
    BallotNotFoundError,
    BallotStatusTransitionError,
    BallotStillOpenError,
    BallotValidationError,
)
from paddock.engagement.ballots.types import (
    BALLOT_TYPES,
    OUTCOME_NON_WINNER,
    OUTCOME_WINNER,
    BallotResults,
    BallotSummary,
    DrawOutcome,
    OpenBallot,
    UserBallotResult,
)

logger = structlog.get_logger(__name__)

BALLOT_STATUSES = ("open", "closed", "drawn")
ALLOWED_STATUS_TRANSITIONS = {("open", "closed"), ("closed", "open")}
ADMIN_LIST_LIMIT = 30


def is_accepting_entries(ballot: Ballot, *, now_utc: datetime) -> bool:
    return ballot.status == "open" and now_utc < ballot.cutoff_at


class BallotService:
    @staticmethod
    async def create_ballot(
        session: AsyncSession,
        *,
        ballot_type: str,
        title: str,
        cutoff_at: datetime,
        max_winners: int,
        horse_id: int | None = None,
        description: str | None = None,
        event_date: date | None = None,
        racecourse_allocation: int | None = None,
        now_utc: datetime,
    ) -> Ballot:
        if ballot_type not in BALLOT_TYPES:
            raise BallotValidationError("unknown ballot type")
        if not title.strip():
            raise BallotValidationError("title is required")
        if max_winners < 1:
            raise BallotValidationError("max_winners must be at least 1")
        if racecourse_allocation is not None and racecourse_allocation < 0:
            raise BallotValidationError("racecourse_allocation must not be negative")
        if horse_id is not None and await HorsesRepo.get_by_id(session, horse_id) is None:
            raise BallotValidationError("horse not found")

        ballot = await BallotsRepo.create(
            session,
            ballot=Ballot(
                horse_id=horse_id,
                ballot_type=ballot_type,
                title=title.strip(),
                description=description,
                event_date=event_date,
                cutoff_at=cutoff_at,
                max_winners=max_winners,
                racecourse_allocation=racecourse_allocation,
                status="open",
                created_at=now_utc,
            ),
        )
        logger.info("ballot_created", ballot_id=ballot.id, ballot_type=ballot_type, horse_id=horse_id)
        return ballot

    @staticmethod
    async def set_status(session: AsyncSession, *, ballot_id: int, status: str) -> Ballot:
        ballot = await BallotsRepo.get_by_id_for_update(session, ballot_id)
        if ballot is None:
            raise BallotNotFoundError
        if ballot.status == "drawn":
            raise BallotAlreadyDrawnError
        if ballot.status == status:
            return ballot
        if (ballot.status, status) not in ALLOWED_STATUS_TRANSITIONS:
            raise BallotStatusTransitionError

        ballot.status = status
        await session.flush()
        logger.info("ballot_status_changed", ballot_id=ballot_id, status=status)
        return ballot

    @staticmethod
    async def enter(
        session: AsyncSession,
        *,
        ballot_id: int,
        user_id: int,
        now_utc: datetime,
    ) -> None:
        ballot = await BallotsRepo.get_by_id(session, ballot_id)
        if ballot is None:
            raise BallotNotFoundError
        if not is_accepting_entries(ballot, now_utc=now_utc):
            raise BallotClosedError
        if ballot.horse_id is not None:
            owned = await OwnershipsRepo.get_user_shares(session, user_id=user_id, horse_id=ballot.horse_id)
            if owned <= 0:
                raise BallotNotEligibleError

        try:
            async with session.begin_nested():
                await BallotsRepo.create_entry(
                    session,
                    ballot_id=ballot_id,
                    user_id=user_id,
                    now_utc=now_utc,
                )
        except IntegrityError as exc:
            logger.info("ballot_entry_duplicate", ballot_id=ballot_id, user_id=user_id)
            raise AlreadyEnteredError from exc

        logger.info("ballot_entered", ballot_id=ballot_id, user_id=user_id)

    @staticmethod
    async def run_draw(
        session: AsyncSession,
        *,
        ballot_id: int,
        now_utc: datetime,
        rng: random.Random | None = None,
    ) -> DrawOutcome:
        ballot = await BallotsRepo.get_by_id_for_update(session, ballot_id)
        if ballot is None:
            raise BallotNotFoundError
        if ballot.status == "drawn" or await BallotsRepo.count_results(session, ballot_id) > 0:
            logger.info("ballot_draw_rejected_already_drawn", ballot_id=ballot_id)
            raise BallotAlreadyDrawnError
        if ballot.status == "open" and now_utc < ballot.cutoff_at:
            raise BallotStillOpenError

        entries = await BallotsRepo.list_entries(session, ballot_id)
        slots = winner_slots(
            max_winners=ballot.max_winners,
            racecourse_allocation=ballot.racecourse_allocation,
        )
        plan = plan_draw([entry.user_id for entry in entries], slots=slots, rng=rng)
        outcomes = [(user_id, OUTCOME_WINNER) for user_id in plan.winners]
        outcomes.extend((user_id, OUTCOME_NON_WINNER) for user_id in plan.non_winners)
        await BallotsRepo.insert_results(session, ballot_id=ballot_id, outcomes=outcomes, now_utc=now_utc)

        ballot.status = "drawn"
        ballot.drawn_at = now_utc
        await session.flush()

        outcome = DrawOutcome(
            ballot_id=ballot_id,
            entrants=len(plan.winners) + len(plan.non_winners),
            winners_count=len(plan.winners),
            non_winners_count=len(plan.non_winners),
        )
        logger.info(
            "ballot_drawn",
            ballot_id=ballot_id,
            entrants=outcome.entrants,
            winners=outcome.winners_count,
            slots=slots,
        )
        return outcome

    @staticmethod
    async def get_results(session: AsyncSession, *, ballot_id: int) -> BallotResults:
        ballot = await BallotsRepo.get_by_id(session, ballot_id)
        if ballot is None:
            raise BallotNotFoundError
        results = await BallotsRepo.list_results(session, ballot_id)
        return BallotResults(
            ballot_id=ballot_id,
            status=ballot.status,
            winner_user_ids=[result.user_id for result in results if result.outcome == OUTCOME_WINNER],
            unsuccessful_count=sum(1 for result in results if result.outcome == OUTCOME_NON_WINNER),
        )

    @staticmethod
    async def list_user_results(session: AsyncSession, *, user_id: int) -> list[UserBallotResult]:
        rows = await BallotsRepo.list_results_for_user(session, user_id)
        return [
            UserBallotResult(
                ballot_id=ballot.id,
                ballot_type=ballot.ballot_type,
                title=ballot.title,
                event_date=ballot.event_date,
                cutoff_at=ballot.cutoff_at,
                outcome=result.outcome,
            )
            for result, ballot in rows
        ]

    @staticmethod
    async def list_open_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> list[OpenBallot]:
        ownerships = await OwnershipsRepo.list_for_user(session, user_id)
        ballots = await BallotsRepo.list_open_for_horses(
            session,
            horse_ids=[ownership.horse_id for ownership in ownerships],
            now_utc=now_utc,
        )
        ballot_ids = [ballot.id for ballot in ballots]
        counts = await BallotsRepo.count_entries(session, ballot_ids)
        entered = await BallotsRepo.list_entered_ballot_ids(session, user_id=user_id, ballot_ids=ballot_ids)
        return [
            OpenBallot(
                ballot_id=ballot.id,
                horse_id=ballot.horse_id,
                ballot_type=ballot.ballot_type,
                title=ballot.title,
                description=ballot.description,
                event_date=ballot.event_date,
                cutoff_at=ballot.cutoff_at,
                max_winners=ballot.max_winners,
                entry_count=counts.get(ballot.id, 0),
                entered=ballot.id in entered,
            )
            for ballot in ballots
        ]

    @staticmethod
    async def list_for_admin(
        session: AsyncSession,
        *,
        status: str | None = None,
        limit: int = ADMIN_LIST_LIMIT,
    ) -> list[BallotSummary]:
        if status is not None and status not in BALLOT_STATUSES:
            raise BallotValidationError("unknown ballot status")
        ballots = await BallotsRepo.list_recent(session, status=status, limit=limit)
        counts = await BallotsRepo.count_entries(session, [ballot.id for ballot in ballots])
        horses = await HorsesRepo.list_by_ids(
            session,
            [ballot.horse_id for ballot in ballots if ballot.horse_id is not None],
        )
        return [
            BallotSummary(
                ballot_id=ballot.id,
                horse_id=ballot.horse_id,
                horse_name=horses[ballot.horse_id].name if ballot.horse_id in horses else None,
                ballot_type=ballot.ballot_type,
                title=ballot.title,
                event_date=ballot.event_date,
                cutoff_at=ballot.cutoff_at,
                max_winners=ballot.max_winners,
                status=ballot.status,
                entry_count=counts.get(ballot.id, 0),
            )
            for ballot in ballots
        ]
