from __future__ import annotations

"""Mode registry and metadata.

Each quiz mode is a ModeMeta value: which view it owns, what its items look
like, and which scoring/distractor rules the shared engine applies. Building
an engine for a mode goes through ``make_engine``.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from ..banks.loader import AlgorithmNames
from ..banks.schema import BankItem, ComplexityQuestion, PatternCard, Scenario, SignalQuestion
from ..errors import UnknownModeError
from ..quiz.engine import QuizEngine
from ..quiz.models import QUIZ_VIEWS
from ..quiz.rules import BankDistractors, DistractorStrategy, FixedReward, ItemDistractors, ItemPoints, ScoringRule


@dataclass(frozen=True)
class ModeMeta:
    id: str
    name: str
    description: str
    view: str
    item_model: Type[BankItem]
    item_noun: str
    shuffle_on_start: bool
    answerable: bool
    tracks_streak: bool
    scoring: Optional[ScoringRule]
    distractors: Optional[DistractorStrategy]


def _signal_meta(reward: int) -> ModeMeta:
    return ModeMeta(
        id="signal",
        name="Signal Quiz",
        description="Read a problem signal and pick the algorithm it points to.",
        view=QUIZ_VIEWS["signal"],
        item_model=SignalQuestion,
        item_noun="Questions",
        shuffle_on_start=True,
        answerable=True,
        tracks_streak=True,
        scoring=FixedReward(reward),
        distractors=ItemDistractors(),
    )


def _pattern_meta() -> ModeMeta:
    return ModeMeta(
        id="pattern",
        name="Pattern Flashcards",
        description="Flip through patterns with their signals and anti-signals.",
        view=QUIZ_VIEWS["pattern"],
        item_model=PatternCard,
        item_noun="Patterns",
        shuffle_on_start=False,
        answerable=False,
        tracks_streak=False,
        scoring=None,
        distractors=None,
    )


def _scenario_meta() -> ModeMeta:
    return ModeMeta(
        id="scenario",
        name="Scenario Challenge",
        description="Solve interview-style scenarios; harder ones are worth more.",
        view=QUIZ_VIEWS["scenario"],
        item_model=Scenario,
        item_noun="Scenarios",
        shuffle_on_start=True,
        answerable=True,
        tracks_streak=False,
        scoring=ItemPoints(),
        distractors=BankDistractors(),
    )


def _complexity_meta(reward: int) -> ModeMeta:
    return ModeMeta(
        id="complexity",
        name="Complexity Quiz",
        description="Name the time/space complexity of a snippet or approach.",
        view=QUIZ_VIEWS["complexity"],
        item_model=ComplexityQuestion,
        item_noun="Questions",
        shuffle_on_start=True,
        answerable=True,
        tracks_streak=True,
        scoring=FixedReward(reward),
        distractors=ItemDistractors(),
    )


def list_modes(rewards: Optional[Dict[str, int]] = None) -> List[ModeMeta]:
    r = rewards or {}
    return [
        _signal_meta(int(r.get("signal", 10))),
        _pattern_meta(),
        _scenario_meta(),
        _complexity_meta(int(r.get("complexity", 10))),
    ]


def get_mode(mode_id: str, rewards: Optional[Dict[str, int]] = None) -> ModeMeta:
    for m in list_modes(rewards):
        if m.id == mode_id:
            return m
    raise UnknownModeError(mode_id)


def item_models() -> Dict[str, Type[BankItem]]:
    return {m.id: m.item_model for m in list_modes()}


def make_engine(
    mode_id: str,
    *,
    names: Optional[AlgorithmNames] = None,
    rng: Optional[random.Random] = None,
    params: Optional[Dict[str, Any]] = None,
) -> QuizEngine:
    """Factory that builds the engine for ``mode_id`` with quiz params applied."""
    p = params or {}
    mode = get_mode(mode_id, p.get("rewards"))
    return QuizEngine(mode, names=names, rng=rng, max_options=int(p.get("max_options", 4)))
