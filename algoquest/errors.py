from __future__ import annotations

"""Exception types shared across the quiz engine."""


class QuizError(Exception):
    """Base class for AlgoQuest errors."""


class BankLoadError(QuizError):
    """A question bank is missing, unreadable, or fails validation."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load question bank {path}: {reason}")
        self.path = path
        self.reason = reason


class EngineError(QuizError):
    """An engine operation is not valid for the mode or the run's state."""


class TransitionError(QuizError):
    """A lifecycle action is not valid in the current view."""


class UnknownModeError(QuizError, KeyError):
    def __init__(self, mode_id: str) -> None:
        super().__init__(f"Unknown mode id: {mode_id}")
        self.mode_id = mode_id

    def __str__(self) -> str:
        return str(self.args[0])
