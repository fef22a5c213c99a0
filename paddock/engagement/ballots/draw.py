from __future__ import annotations

import random
from collections.abc import Sequence

from paddock.engagement.ballots.types import DrawPlan

_system_random = random.SystemRandom()


def winner_slots(*, max_winners: int, racecourse_allocation: int | None) -> int:
    slots = max(0, max_winners)
    if racecourse_allocation is not None:
        slots = min(slots, max(0, racecourse_allocation))
    return slots


def plan_draw(
    entrant_user_ids: Sequence[int],
    *,
    slots: int,
    rng: random.Random | None = None,
) -> DrawPlan:
    """Uniform selection without replacement; entry order carries no weight."""
    entrants = list(dict.fromkeys(entrant_user_ids))
    if slots >= len(entrants):
        return DrawPlan(winners=tuple(entrants), non_winners=())

    chosen = (rng or _system_random).sample(entrants, slots)
    chosen_set = set(chosen)
    return DrawPlan(
        winners=tuple(chosen),
        non_winners=tuple(user_id for user_id in entrants if user_id not in chosen_set),
    )
