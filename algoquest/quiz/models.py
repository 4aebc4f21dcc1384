from __future__ import annotations

"""Run state, stats and snapshot records with their JSON mappings.

JSON keys are camelCase so a snapshot written here has the same shape as the
browser build's localStorage records.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from ..banks.schema import BankItem

HOMEPAGE = "homepage"
RESULTS = "results"
QUIZ_VIEWS: Dict[str, str] = {
    "signal": "signal-quiz",
    "pattern": "pattern-quiz",
    "scenario": "scenario-quiz",
    "complexity": "complexity-quiz",
}
MODE_IDS: List[str] = list(QUIZ_VIEWS.keys())


def mode_for_view(view: str) -> Optional[str]:
    for mode_id, v in QUIZ_VIEWS.items():
        if v == view:
            return mode_id
    return None


def _count(data: Dict[str, Any], key: str) -> int:
    v = data.get(key, 0)
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"{key} must be an integer, got {v!r}")
    if v < 0:
        raise ValueError(f"{key} must be >= 0, got {v}")
    return v


def _flag(data: Dict[str, Any], key: str) -> bool:
    v = data.get(key, False)
    if not isinstance(v, bool):
        raise ValueError(f"{key} must be a boolean, got {v!r}")
    return v


@dataclass
class AggregateStats:
    games_played: int = 0
    best_streak: int = 0
    total_points: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "gamesPlayed": self.games_played,
            "bestStreak": self.best_streak,
            "totalPoints": self.total_points,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AggregateStats":
        if not isinstance(data, dict):
            raise ValueError("stats record must be an object")
        return cls(
            games_played=_count(data, "gamesPlayed"),
            best_streak=_count(data, "bestStreak"),
            total_points=_count(data, "totalPoints"),
        )


@dataclass
class RunState:
    """One mode's run: a fixed item order plus progress counters."""

    items: List[BankItem] = field(default_factory=list)
    current_index: int = 0
    score: int = 0
    streak: int = 0
    correct: int = 0
    answered: bool = False
    is_flipped: bool = False

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def started(self) -> bool:
        return bool(self.items)

    @property
    def current_item(self) -> Optional[BankItem]:
        if not self.items:
            return None
        return self.items[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.items) - 1

    def to_json(self) -> Dict[str, Any]:
        return {
            "items": [item.to_json() for item in self.items],
            "currentIndex": self.current_index,
            "score": self.score,
            "streak": self.streak,
            "correct": self.correct,
            "answered": self.answered,
            "isFlipped": self.is_flipped,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any], item_model: Type[BankItem]) -> "RunState":
        if not isinstance(data, dict):
            raise ValueError("run state must be an object")
        raw_items = data.get("items", [])
        if not isinstance(raw_items, list):
            raise ValueError("items must be a list")
        try:
            items = [item_model.model_validate(i) for i in raw_items]
        except ValidationError as e:
            raise ValueError(f"invalid item in run state: {e.errors()[0]['msg']}") from e
        index = _count(data, "currentIndex")
        if items and index >= len(items):
            raise ValueError(f"currentIndex {index} out of range for {len(items)} items")
        if not items and index != 0:
            raise ValueError("currentIndex must be 0 for an empty run")
        return cls(
            items=items,
            current_index=index,
            score=_count(data, "score"),
            streak=_count(data, "streak"),
            correct=_count(data, "correct"),
            answered=_flag(data, "answered"),
            is_flipped=_flag(data, "isFlipped"),
        )


@dataclass(frozen=True)
class Option:
    """A presented choice: algorithm/answer id, its display label, and correctness."""

    value: str
    label: str
    is_correct: bool


@dataclass(frozen=True)
class AnswerOutcome:
    accepted: bool
    correct: bool = False
    points: int = 0
    chosen: Optional[Option] = None
    correct_value: str = ""
    correct_label: str = ""
    explanation: str = ""
    is_last: bool = False
    score: int = 0
    streak: int = 0
    best_streak_raised: bool = False


@dataclass
class ResultsSummary:
    score: int
    correct: int
    total: int
    percentage: int
    game_type: str

    @classmethod
    def from_run(cls, state: RunState, game_type: str) -> "ResultsSummary":
        total = state.total
        # Half-up rounding; Python's round() is banker's rounding.
        pct = int(math.floor(100 * state.correct / total + 0.5)) if total else 0
        return cls(score=state.score, correct=state.correct, total=total, percentage=pct, game_type=game_type)

    def to_json(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "correct": self.correct,
            "total": self.total,
            "percentage": self.percentage,
            "gameType": self.game_type,
        }


@dataclass(frozen=True)
class AdvanceResult:
    has_next: bool
    summary: Optional[ResultsSummary] = None


@dataclass
class SessionSnapshot:
    """Everything needed to resume: the view plus every mode's run."""

    current_view: str
    runs: Dict[str, RunState] = field(default_factory=dict)
    timestamp: int = 0  # epoch milliseconds of the save

    @property
    def active_mode(self) -> Optional[str]:
        return mode_for_view(self.current_view)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"currentView": self.current_view}
        for mode_id in MODE_IDS:
            data[mode_id] = self.runs.get(mode_id, RunState()).to_json()
        data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any], item_models: Dict[str, Type[BankItem]]) -> "SessionSnapshot":
        if not isinstance(data, dict):
            raise ValueError("snapshot must be an object")
        view = data.get("currentView")
        if not isinstance(view, str):
            raise ValueError("currentView must be a string")
        ts = data.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not math.isfinite(ts):
            raise ValueError("timestamp must be a finite number")
        runs = {}
        for mode_id in MODE_IDS:
            runs[mode_id] = RunState.from_json(data.get(mode_id, {}), item_models[mode_id])
        return cls(current_view=view, runs=runs, timestamp=int(ts))
