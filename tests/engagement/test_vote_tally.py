from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from paddock.engagement.votes.errors import VoteValidationError
from paddock.engagement.votes.service import is_accepting_responses, normalize_option_labels
from paddock.engagement.votes.tally import tally_votes

OPTIONS = [(1, "A"), (2, "B"), (3, "C")]


def test_tied_options_are_all_reported_as_winners() -> None:
    tally = tally_votes(10, OPTIONS, {1: 2, 2: 2, 3: 1})

    assert [winner.label for winner in tally.winners] == ["A", "B"]
    assert tally.total_responses == 5


def test_single_leader_wins() -> None:
    tally = tally_votes(10, OPTIONS, {1: 1, 2: 4})

    assert [winner.label for winner in tally.winners] == ["B"]


def test_options_without_responses_report_zero() -> None:
    tally = tally_votes(10, OPTIONS, {2: 1})

    assert [option.count for option in tally.option_counts] == [0, 1, 0]


def test_no_responses_means_no_winner() -> None:
    tally = tally_votes(10, OPTIONS, {})

    assert tally.winners == []
    assert tally.total_responses == 0


def test_option_labels_are_trimmed_and_bounded() -> None:
    assert normalize_option_labels([" Yes ", "No", "  "]) == ["Yes", "No"]
    with pytest.raises(VoteValidationError):
        normalize_option_labels(["Only one"])
    with pytest.raises(VoteValidationError):
        normalize_option_labels([f"Option {index}" for index in range(11)])


def test_vote_cutoff_is_inclusive() -> None:
    cutoff = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    vote = SimpleNamespace(status="open", cutoff_at=cutoff)

    assert is_accepting_responses(vote, now_utc=cutoff) is True
    assert is_accepting_responses(vote, now_utc=cutoff + timedelta(seconds=1)) is False
    assert is_accepting_responses(SimpleNamespace(status="open", cutoff_at=None), now_utc=cutoff) is True
    closed = SimpleNamespace(status="closed", cutoff_at=None)
    assert is_accepting_responses(closed, now_utc=cutoff) is False
