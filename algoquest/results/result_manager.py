from __future__ import annotations

"""Results Manager: appends finished runs to the Parquet run history."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional
from uuid import uuid4

from storage.schema import RunHistoryRow
from storage.store import append_run_history, init_store, validate_records

from ..quiz.models import ResultsSummary


class ResultRecorder:
    def __init__(self, data_dir: str | Path, *, now: Optional[Callable[[], datetime]] = None) -> None:
        self.data_dir = Path(data_dir).expanduser()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._initialized = False

    def record(self, summary: ResultsSummary) -> Optional[str]:
        """Append one row for ``summary``; empty runs are not recorded."""
        if summary.total <= 0:
            return None
        if not self._initialized:
            init_store(self.data_dir)
            self._initialized = True
        run_id = str(uuid4())
        row = RunHistoryRow(
            run_id=run_id,
            finished_at=self._now(),
            mode=summary.game_type,
            score=summary.score,
            correct=summary.correct,
            total=summary.total,
        )
        append_run_history(validate_records([row]), self.data_dir)
        return run_id
