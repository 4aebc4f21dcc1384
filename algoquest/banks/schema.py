from __future__ import annotations

"""Pydantic models for the JSON question banks.

Field names follow the camelCase keys used in the bank documents; the Python
attributes are snake_case and every model serializes back with its aliases.
"""

from abc import abstractmethod
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DIFFICULTIES = ("easy", "medium", "hard")


class BankItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: Optional[str] = None

    @property
    @abstractmethod
    def prompt(self) -> str: ...

    @property
    @abstractmethod
    def correct_id(self) -> str: ...

    @property
    def explanation_text(self) -> str:
        return ""

    def to_json(self) -> Dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SignalQuestion(BankItem):
    signal: str
    correct_algorithm: str = Field(alias="correctAlgorithm")
    wrong_options: List[str] = Field(default_factory=list, alias="wrongOptions")
    explanation: str = ""

    @property
    def prompt(self) -> str:
        return self.signal

    @property
    def correct_id(self) -> str:
        return self.correct_algorithm

    @property
    def explanation_text(self) -> str:
        return self.explanation


class PatternCard(BankItem):
    pattern: str
    signals: List[str] = Field(default_factory=list)
    anti_signals: List[str] = Field(default_factory=list, alias="antiSignals")

    @property
    def prompt(self) -> str:
        return self.pattern

    @property
    def correct_id(self) -> str:
        return self.pattern


class Scenario(BankItem):
    problem_description: str = Field(alias="problemDescription")
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    points: int = Field(10, ge=0)
    hints: List[str] = Field(default_factory=list)
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str = ""

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def prompt(self) -> str:
        return self.problem_description

    @property
    def correct_id(self) -> str:
        return self.correct_answer

    @property
    def explanation_text(self) -> str:
        return self.explanation


class ComplexityQuestion(BankItem):
    question: str
    correct_answer: str = Field(alias="correctAnswer")
    wrong_options: List[str] = Field(default_factory=list, alias="wrongOptions")
    explanation: str = ""

    @property
    def prompt(self) -> str:
        return self.question

    @property
    def correct_id(self) -> str:
        return self.correct_answer

    @property
    def explanation_text(self) -> str:
        return self.explanation


class SignalBank(BaseModel):
    questions: List[SignalQuestion]


class PatternBank(BaseModel):
    cards: List[PatternCard]


class ScenarioBank(BaseModel):
    scenarios: List[Scenario]


class ComplexityBank(BaseModel):
    questions: List[ComplexityQuestion]


class AlgorithmRegistry(BaseModel):
    algorithms: Dict[str, str] = Field(default_factory=dict)
