from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from paddock.db.repo.votes_repo import VotesRepo
from paddock.db.session import SessionLocal
from paddock.engagement.votes.errors import (
    AlreadyVotedError,
    VoteClosedError,
    VoteNotEligibleError,
    VoteResultsNotAvailableError,
)
from paddock.engagement.votes.service import VoteService
from tests.integration.syndicate_fixtures import UTC, _buy_shares, _create_horse, _create_user


async def _owner(seed: str, horse_id: int) -> int:
    user_id = await _create_user(seed)
    await _buy_shares(user_id=user_id, horse_id=horse_id, qty=1)
    return user_id


async def _cast(vote_id: int, option_id: int, user_id: int) -> None:
    async with SessionLocal.begin() as session:
        await VoteService.cast(
            session,
            vote_id=vote_id,
            option_id=option_id,
            user_id=user_id,
            now_utc=datetime.now(UTC),
        )


@pytest.mark.asyncio
async def test_vote_lifecycle_with_tie_and_single_response_per_owner() -> None:
    horse_id = await _create_horse(total_shares=20)
    owners = [await _owner(f"voter-{index}", horse_id) for index in range(4)]
    outsider = await _create_user("voter-outsider")
    async with SessionLocal.begin() as session:
        vote = await VoteService.create_vote(
            session,
            title="Next season colours",
            option_labels=["Green", "Gold", "  "],
            horse_id=horse_id,
            now_utc=datetime.now(UTC),
        )
        options = await VotesRepo.list_options(session, vote.id)
    green, gold = (option.id for option in options)

    await _cast(vote.id, green, owners[0])
    await _cast(vote.id, gold, owners[1])
    await _cast(vote.id, green, owners[2])
    await _cast(vote.id, gold, owners[3])
    with pytest.raises(AlreadyVotedError):
        await _cast(vote.id, gold, owners[0])
    with pytest.raises(VoteNotEligibleError):
        await _cast(vote.id, green, outsider)

    async with SessionLocal.begin() as session:
        with pytest.raises(VoteResultsNotAvailableError):
            await VoteService.tally(session, vote_id=vote.id, require_closed=True)
        await VoteService.set_status(session, vote_id=vote.id, status="closed")

    with pytest.raises(VoteClosedError):
        await _cast(vote.id, green, owners[0])

    async with SessionLocal.begin() as session:
        tally = await VoteService.tally(session, vote_id=vote.id, require_closed=True)
    assert tally.total_responses == 4
    assert sorted(winner.label for winner in tally.winners) == ["Gold", "Green"]


@pytest.mark.asyncio
async def test_open_vote_listing_filters_by_ownership_and_cutoff() -> None:
    now = datetime.now(UTC)
    owned_horse = await _create_horse(total_shares=20)
    other_horse = await _create_horse(total_shares=20)
    owner = await _owner("listing-owner", owned_horse)

    async def _create(title: str, horse_id: int | None, cutoff_at: datetime | None) -> int:
        async with SessionLocal.begin() as session:
            vote = await VoteService.create_vote(
                session,
                title=title,
                option_labels=["Yes", "No"],
                horse_id=horse_id,
                cutoff_at=cutoff_at,
                now_utc=now,
            )
        return vote.id

    club_vote = await _create("Club trip", None, None)
    horse_vote = await _create("Race plan", owned_horse, now + timedelta(days=2))
    await _create("Other syndicate", other_horse, None)
    await _create("Expired", owned_horse, now - timedelta(minutes=5))

    async with SessionLocal.begin() as session:
        yes = (await VotesRepo.list_options(session, horse_vote))[0]
    await _cast(horse_vote, yes.id, owner)

    async with SessionLocal.begin() as session:
        listed = await VoteService.list_open_for_user(session, user_id=owner, now_utc=now)

    assert sorted(vote.vote_id for vote in listed) == sorted([club_vote, horse_vote])
    by_id = {vote.vote_id: vote for vote in listed}
    assert by_id[horse_vote].my_option_id == yes.id
    assert by_id[club_vote].my_option_id is None
    assert [choice.label for choice in by_id[club_vote].options] == ["Yes", "No"]
