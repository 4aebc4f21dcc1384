from __future__ import annotations

"""Result presentation helpers."""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Verdict:
    icon: str
    title: str


# Highest threshold first.
VERDICTS: List[Tuple[int, Verdict]] = [
    (90, Verdict("🏆", "Outstanding!")),
    (70, Verdict("🌟", "Great Job!")),
    (50, Verdict("💪", "Good Effort!")),
    (0, Verdict("📚", "Keep Practicing!")),
]


def verdict(percentage: int) -> Verdict:
    for threshold, v in VERDICTS:
        if percentage >= threshold:
            return v
    return VERDICTS[-1][1]
