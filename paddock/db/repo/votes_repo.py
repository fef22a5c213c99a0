from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.vote_options import VoteOption
from paddock.db.models.vote_responses import VoteResponse
from paddock.db.models.votes import Vote


class VotesRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        vote: Vote,
        option_labels: Sequence[str],
    ) -> tuple[Vote, list[VoteOption]]:
        session.add(vote)
        await session.flush()
        options = [
            VoteOption(vote_id=vote.id, label=label, position=position)
            for position, label in enumerate(option_labels, start=1)
        ]
        session.add_all(options)
        await session.flush()
        return vote, options

    @staticmethod
    async def get_by_id(session: AsyncSession, vote_id: int) -> Vote | None:
        return await session.get(Vote, vote_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, vote_id: int) -> Vote | None:
        stmt = select(Vote).where(Vote.id == vote_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_options(session: AsyncSession, vote_id: int) -> list[VoteOption]:
        stmt = (
            select(VoteOption)
            .where(VoteOption.vote_id == vote_id)
            .order_by(VoteOption.position.asc(), VoteOption.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_response(
        session: AsyncSession,
        *,
        vote_id: int,
        option_id: int,
        user_id: int,
        now_utc: datetime,
    ) -> VoteResponse:
        response = VoteResponse(vote_id=vote_id, option_id=option_id, user_id=user_id, created_at=now_utc)
        session.add(response)
        await session.flush()
        return response

    @staticmethod
    async def count_by_option(session: AsyncSession, vote_id: int) -> dict[int, int]:
        stmt = (
            select(VoteResponse.option_id, func.count(VoteResponse.id))
            .where(VoteResponse.vote_id == vote_id)
            .group_by(VoteResponse.option_id)
        )
        result = await session.execute(stmt)
        return {int(option_id): int(count) for option_id, count in result.all()}

    @staticmethod
    async def list_open_for_horses(
        session: AsyncSession,
        *,
        horse_ids: Sequence[int],
        now_utc: datetime,
        limit: int,
    ) -> list[Vote]:
        """Open votes still taking responses: club-wide ones plus those for ``horse_ids``."""
        stmt = (
            select(Vote)
            .where(
                Vote.status == "open",
                or_(Vote.cutoff_at.is_(None), Vote.cutoff_at >= now_utc),
                or_(Vote.horse_id.is_(None), Vote.horse_id.in_(tuple(horse_ids))),
            )
            .order_by(Vote.created_at.desc(), Vote.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_options_for_votes(
        session: AsyncSession,
        vote_ids: Sequence[int],
    ) -> dict[int, list[VoteOption]]:
        ids = tuple({int(vote_id) for vote_id in vote_ids})
        if not ids:
            return {}
        stmt = (
            select(VoteOption)
            .where(VoteOption.vote_id.in_(ids))
            .order_by(VoteOption.vote_id.asc(), VoteOption.position.asc(), VoteOption.id.asc())
        )
        result = await session.execute(stmt)
        options: dict[int, list[VoteOption]] = {}
        for option in result.scalars().all():
            options.setdefault(option.vote_id, []).append(option)
        return options

    @staticmethod
    async def map_user_choices(
        session: AsyncSession,
        *,
        user_id: int,
        vote_ids: Sequence[int],
    ) -> dict[int, int]:
        ids = tuple({int(vote_id) for vote_id in vote_ids})
        if not ids:
            return {}
        stmt = select(VoteResponse.vote_id, VoteResponse.option_id).where(
            VoteResponse.user_id == user_id,
            VoteResponse.vote_id.in_(ids),
        )
        result = await session.execute(stmt)
        return {int(vote_id): int(option_id) for vote_id, option_id in result.all()}
