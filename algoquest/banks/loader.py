from __future__ import annotations

"""Question bank loader (JSON).

All five bank documents are read and validated up front; a single failure
aborts the whole load so no mode ever starts against a partial set of banks.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..errors import BankLoadError
from .schema import (
    AlgorithmRegistry,
    ComplexityBank,
    ComplexityQuestion,
    PatternBank,
    PatternCard,
    Scenario,
    ScenarioBank,
    SignalBank,
    SignalQuestion,
)

DEFAULT_FILES: Dict[str, str] = {
    "signal": "signal_questions.json",
    "pattern": "pattern_recognition_cards.json",
    "scenario": "game_scenarios.json",
    "complexity": "complexity_questions.json",
    "algorithms": "algorithms.json",
}


def default_banks_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "resources" / "banks"


class AlgorithmNames:
    """Display-name lookup for algorithm ids; unknown ids display as themselves."""

    def __init__(self, names: Optional[Dict[str, str]] = None) -> None:
        self._names = dict(names or {})

    def label(self, algo_id: str) -> str:
        return self._names.get(algo_id, algo_id)

    def __len__(self) -> int:
        return len(self._names)


@dataclass
class QuestionBanks:
    signal: List[SignalQuestion] = field(default_factory=list)
    pattern: List[PatternCard] = field(default_factory=list)
    scenario: List[Scenario] = field(default_factory=list)
    complexity: List[ComplexityQuestion] = field(default_factory=list)
    names: AlgorithmNames = field(default_factory=AlgorithmNames)

    def for_mode(self, mode_id: str) -> list:
        return list(getattr(self, mode_id))

    def counts(self) -> Dict[str, int]:
        return {
            "signal": len(self.signal),
            "pattern": len(self.pattern),
            "scenario": len(self.scenario),
            "complexity": len(self.complexity),
        }


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise BankLoadError(str(path), "file not found") from None
    except json.JSONDecodeError as e:
        raise BankLoadError(str(path), f"invalid JSON ({e.msg} at line {e.lineno})") from e
    except OSError as e:
        raise BankLoadError(str(path), str(e)) from e


def _parse(path: Path, model: Type[BaseModel]) -> BaseModel:
    data = _read_json(path)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BankLoadError(str(path), f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e


def load_banks(bank_dir: str | Path | None = None, files: Optional[Dict[str, str]] = None) -> QuestionBanks:
    """Load and validate all question banks from ``bank_dir``.

    Args:
        bank_dir: Directory holding the bank documents. None uses the bundled banks.
        files: Optional per-bank file name overrides (keys as in ``DEFAULT_FILES``).

    Raises:
        BankLoadError: on the first bank that cannot be read or validated.
    """
    base = Path(bank_dir) if bank_dir else default_banks_dir()
    names = {**DEFAULT_FILES, **(files or {})}

    signal = _parse(base / names["signal"], SignalBank)
    pattern = _parse(base / names["pattern"], PatternBank)
    scenario = _parse(base / names["scenario"], ScenarioBank)
    complexity = _parse(base / names["complexity"], ComplexityBank)
    registry = _parse(base / names["algorithms"], AlgorithmRegistry)

    return QuestionBanks(
        signal=list(signal.questions),  # type: ignore[attr-defined]
        pattern=list(pattern.cards),  # type: ignore[attr-defined]
        scenario=list(scenario.scenarios),  # type: ignore[attr-defined]
        complexity=list(complexity.questions),  # type: ignore[attr-defined]
        names=AlgorithmNames(registry.algorithms),  # type: ignore[attr-defined]
    )
