"""AlgoQuest package initialization.

A quiz engine for algorithm patterns: four modes driven by JSON question
banks, with persisted stats and resumable sessions. Run ``algoquest play``.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
