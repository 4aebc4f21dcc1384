from __future__ import annotations

"""Scoring rules and distractor strategies that parameterize the engine."""

import random
from typing import List, Optional, Protocol, Sequence

from ..banks.schema import BankItem
from ..util.randomness import shuffle


class ScoringRule(Protocol):
    def points(self, item: BankItem) -> int: ...


class DistractorStrategy(Protocol):
    def wrong_options(
        self, item: BankItem, bank: Sequence[BankItem], limit: int, rng: Optional[random.Random] = None
    ) -> List[str]: ...


class FixedReward:
    """Same reward for every correct answer."""

    def __init__(self, points: int = 10) -> None:
        self._points = int(points)

    def points(self, item: BankItem) -> int:
        return self._points


class ItemPoints:
    """Reward is the item's own ``points`` value (scenarios)."""

    def points(self, item: BankItem) -> int:
        return int(getattr(item, "points", 0))


class ItemDistractors:
    """Distractors are the item's hand-authored ``wrong_options``."""

    def wrong_options(
        self, item: BankItem, bank: Sequence[BankItem], limit: int, rng: Optional[random.Random] = None
    ) -> List[str]:
        out: List[str] = []
        for w in getattr(item, "wrong_options", []):
            if w != item.correct_id and w not in out:
                out.append(w)
        return out[:limit]


class BankDistractors:
    """Distractors are other items' correct answers, drawn bank-wide.

    Takes the distinct correct answers across the whole bank, drops the current
    one, shuffles and keeps ``limit``. Small banks give fewer distractors.
    """

    def wrong_options(
        self, item: BankItem, bank: Sequence[BankItem], limit: int, rng: Optional[random.Random] = None
    ) -> List[str]:
        correct = item.correct_id
        seen: List[str] = []
        for other in bank:
            answer = other.correct_id
            if answer != correct and answer not in seen:
                seen.append(answer)
        return shuffle(seen, rng)[:limit]
