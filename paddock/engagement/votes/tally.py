from __future__ import annotations

from collections.abc import Mapping, Sequence

from paddock.engagement.votes.types import OptionCount, VoteTally


def tally_votes(
    vote_id: int,
    options: Sequence[tuple[int, str]],
    counts: Mapping[int, int],
) -> VoteTally:
    """Every option with the top count wins; no responses means no winner."""
    option_counts = [
        OptionCount(option_id=option_id, label=label, count=int(counts.get(option_id, 0)))
        for option_id, label in options
    ]
    total = sum(option.count for option in option_counts)
    if total == 0:
        winners: list[OptionCount] = []
    else:
        top = max(option.count for option in option_counts)
        winners = [option for option in option_counts if option.count == top]
    return VoteTally(
        vote_id=vote_id,
        option_counts=option_counts,
        winners=winners,
        total_responses=total,
    )
