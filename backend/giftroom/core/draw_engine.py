"""Draw Engine — randomized derangement over the giver order with a bounded retry ceiling.

Invariants:
    - PURE: no IO, no DB, no logging side effects beyond the caller's rng state
    - Output is a permutation of the input; no giver is paired with itself
    - Terminates after at most max_attempts shuffles, then raises DrawImpossibleError
    - Input order is the giver order and is never mutated

Design Decisions:
    - Shuffle-and-check over constructive algorithms (Sattolo): Sattolo only yields
      cyclic permutations, uniform-over-derangements needs rejection anyway
    - rng injected: tests pass a seeded random.Random for deterministic assertions
    - Identity compared with ==: duplicate ids can make a derangement impossible, which
      exhausts the ceiling and surfaces as DrawImpossibleError
"""

import random
from collections import Counter
from collections.abc import Hashable, Sequence
from typing import TypeVar

from giftroom.core.errors import DrawImpossibleError

T = TypeVar("T", bound=Hashable)

MAX_DRAW_ATTEMPTS = 100


def is_derangement(givers: Sequence[T], receivers: Sequence[T]) -> bool:
    """True if receivers is a permutation of givers with no fixed point."""
    if len(givers) != len(receivers):
        return False
    if Counter(givers) != Counter(receivers):
        return False
    return all(g != r for g, r in zip(givers, receivers))


def has_fixed_point(givers: Sequence[T], receivers: Sequence[T]) -> bool:
    """True if any position maps to itself."""
    return any(g == r for g, r in zip(givers, receivers))


def draw_receivers(
    givers: Sequence[T],
    rng: random.Random | None = None,
    max_attempts: int = MAX_DRAW_ATTEMPTS,
) -> list[T]:
    """Return receivers aligned with givers: receivers[i] is who givers[i] gives to.

    Raises:
        ValueError: fewer than two givers or a non-positive ceiling.
        DrawImpossibleError: no derangement found within max_attempts shuffles.
    """
    if len(givers) < 2:
        raise ValueError("A draw needs at least two participants")
    if max_attempts < 1:
        raise ValueError("max_attempts must be positive")

    rng = rng or random.SystemRandom()
    for _ in range(max_attempts):
        candidate = list(givers)
        rng.shuffle(candidate)  # Fisher–Yates
        if not has_fixed_point(givers, candidate):
            return candidate
    raise DrawImpossibleError(max_attempts)
