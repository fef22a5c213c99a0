from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

MIN_VOTE_OPTIONS = 2
MAX_VOTE_OPTIONS = 10


@dataclass(frozen=True, slots=True)
class OptionCount:
    option_id: int
    label: str
    count: int


@dataclass(frozen=True, slots=True)
class VoteTally:
    vote_id: int
    option_counts: list[OptionCount]
    winners: list[OptionCount]
    total_responses: int


@dataclass(frozen=True, slots=True)
class VoteChoice:
    option_id: int
    label: str


@dataclass(frozen=True, slots=True)
class OpenVote:
    vote_id: int
    horse_id: int | None
    title: str
    description: str | None
    cutoff_at: datetime | None
    options: list[VoteChoice]
    my_option_id: int | None
