from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

BALLOT_TYPES = ("badge", "stable")
OUTCOME_WINNER = "winner"
OUTCOME_NON_WINNER = "non_winner"


@dataclass(frozen=True, slots=True)
class DrawPlan:
    winners: tuple[int, ...]
    non_winners: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class DrawOutcome:
    ballot_id: int
    entrants: int
    winners_count: int
    non_winners_count: int


@dataclass(frozen=True, slots=True)
class BallotResults:
    ballot_id: int
    status: str
    winner_user_ids: list[int]
    unsuccessful_count: int


@dataclass(frozen=True, slots=True)
class UserBallotResult:
    ballot_id: int
    ballot_type: str
    title: str
    event_date: date | None
    cutoff_at: datetime
    outcome: str


@dataclass(frozen=True, slots=True)
class OpenBallot:
    ballot_id: int
    horse_id: int | None
    ballot_type: str
    title: str
    description: str | None
    event_date: date | None
    cutoff_at: datetime
    max_winners: int
    entry_count: int
    entered: bool


@dataclass(frozen=True, slots=True)
class BallotSummary:
    ballot_id: int
    horse_id: int | None
    horse_name: str | None
    ballot_type: str
    title: str
    event_date: date | None
    cutoff_at: datetime
    max_winners: int
    status: str
    entry_count: int
