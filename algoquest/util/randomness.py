from __future__ import annotations

"""Randomness helpers for run shuffling and seeding."""

import os
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def seed_if_needed() -> None:
    """Seed the global RNG if the SEED env var is set."""
    seed = os.environ.get("SEED")
    if seed is not None:
        try:
            s = int(seed)
        except ValueError:
            return
        random.seed(s)


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Return a private RNG; seeded runs replay the same shuffles."""
    return random.Random(seed)


def shuffle(sequence: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``sequence`` (Fisher-Yates).

    The input is never mutated. Empty and single-element sequences come back
    as an unchanged copy.
    """
    r = rng if rng is not None else random
    out = list(sequence)
    for i in range(len(out) - 1, 0, -1):
        j = r.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out
