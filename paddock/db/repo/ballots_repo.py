from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.ballot_entries import BallotEntry
from paddock.db.models.ballot_results import BallotResult
from paddock.db.models.ballots import Ballot


class BallotsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, ballot: Ballot) -> Ballot:
        session.add(ballot)
        await session.flush()
        return ballot

    @staticmethod
    async def get_by_id(session: AsyncSession, ballot_id: int) -> Ballot | None:
        return await session.get(Ballot, ballot_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, ballot_id: int) -> Ballot | None:
        stmt = select(Ballot).where(Ballot.id == ballot_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_entry(
        session: AsyncSession,
        *,
        ballot_id: int,
        user_id: int,
        now_utc: datetime,
    ) -> BallotEntry:
        entry = BallotEntry(ballot_id=ballot_id, user_id=user_id, created_at=now_utc)
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_entries(session: AsyncSession, ballot_id: int) -> list[BallotEntry]:
        stmt = select(BallotEntry).where(BallotEntry.ballot_id == ballot_id).order_by(BallotEntry.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_results(session: AsyncSession, ballot_id: int) -> int:
        stmt = select(func.count(BallotResult.id)).where(BallotResult.ballot_id == ballot_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def insert_results(
        session: AsyncSession,
        *,
        ballot_id: int,
        outcomes: Sequence[tuple[int, str]],
        now_utc: datetime,
    ) -> None:
        session.add_all(
            [
                BallotResult(ballot_id=ballot_id, user_id=user_id, outcome=outcome, created_at=now_utc)
                for user_id, outcome in outcomes
            ]
        )
        await session.flush()

    @staticmethod
    async def list_results(session: AsyncSession, ballot_id: int) -> list[BallotResult]:
        stmt = select(BallotResult).where(BallotResult.ballot_id == ballot_id).order_by(BallotResult.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_results_for_user(
        session: AsyncSession,
        user_id: int,
    ) -> list[tuple[BallotResult, Ballot]]:
        stmt = (
            select(BallotResult, Ballot)
            .join(Ballot, Ballot.id == BallotResult.ballot_id)
            .where(BallotResult.user_id == user_id)
            .order_by(Ballot.cutoff_at.desc(), BallotResult.id.desc())
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def list_open_for_horses(
        session: AsyncSession,
        *,
        horse_ids: Sequence[int],
        now_utc: datetime,
    ) -> list[Ballot]:
        """Open ballots still taking entries: club-wide ones plus those for ``horse_ids``."""
        stmt = (
            select(Ballot)
            .where(
                Ballot.status == "open",
                Ballot.cutoff_at > now_utc,
                or_(Ballot.horse_id.is_(None), Ballot.horse_id.in_(tuple(horse_ids))),
            )
            .order_by(Ballot.cutoff_at.asc(), Ballot.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_recent(session: AsyncSession, *, status: str | None, limit: int) -> list[Ballot]:
        stmt = select(Ballot)
        if status is not None:
            stmt = stmt.where(Ballot.status == status)
        stmt = stmt.order_by(Ballot.created_at.desc(), Ballot.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_entries(session: AsyncSession, ballot_ids: Sequence[int]) -> dict[int, int]:
        ids = tuple({int(ballot_id) for ballot_id in ballot_ids})
        if not ids:
            return {}
        stmt = (
            select(BallotEntry.ballot_id, func.count(BallotEntry.id))
            .where(BallotEntry.ballot_id.in_(ids))
            .group_by(BallotEntry.ballot_id)
        )
        result = await session.execute(stmt)
        return {int(ballot_id): int(count) for ballot_id, count in result.all()}

    @staticmethod
    async def list_entered_ballot_ids(
        session: AsyncSession,
        *,
        user_id: int,
        ballot_ids: Sequence[int],
    ) -> set[int]:
        ids = tuple({int(ballot_id) for ballot_id in ballot_ids})
        if not ids:
            return set()
        stmt = select(BallotEntry.ballot_id).where(
            BallotEntry.user_id == user_id,
            BallotEntry.ballot_id.in_(ids),
        )
        result = await session.execute(stmt)
        return {int(ballot_id) for ballot_id in result.scalars().all()}
