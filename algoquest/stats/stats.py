from __future__ import annotations

"""Aggregate stats bookkeeping and formatting."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..quiz.models import AggregateStats


def record_streak(stats: "AggregateStats", streak: int) -> bool:
    """Raise best_streak to ``streak`` if higher. Returns True when raised."""
    if streak > stats.best_streak:
        stats.best_streak = int(streak)
        return True
    return False


def record_finished_run(stats: "AggregateStats", score: int) -> None:
    """Count one finished run and bank its points."""
    stats.games_played += 1
    stats.total_points += int(score)


def format_summary(stats: "AggregateStats") -> str:
    """Return a human-readable summary of stats."""
    lines = [
        f"Games played: {stats.games_played}",
        f"Best streak:  {stats.best_streak}",
        f"Total points: {stats.total_points}",
    ]
    return "\n".join(lines)
