from __future__ import annotations

"""Schema constants and Pydantic models for the Parquet-backed run history."""

from datetime import datetime, timezone

import pandas as pd
from pandas.api.types import CategoricalDtype
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

MODES = {"signal", "scenario", "complexity"}


def _cat_dtype(categories: set[str]) -> CategoricalDtype:
    return CategoricalDtype(categories=sorted(categories), ordered=False)


DTYPES = {
    "run_id": "string",
    # timezone-aware UTC timestamps
    "finished_at": pd.DatetimeTZDtype(tz="UTC"),
    "mode": _cat_dtype(MODES),
    "score": "UInt32",
    "correct": "UInt16",
    "total": "UInt16",
}


# --- Pydantic models ---

class RunHistoryRow(BaseModel):
    run_id: str
    finished_at: datetime
    mode: str
    score: int = Field(ge=0, le=4294967295)
    correct: int = Field(ge=0, le=65535)
    total: int = Field(ge=1, le=65535)

    @field_validator("mode")
    @classmethod
    def _known_mode(cls, v: str) -> str:
        if v not in MODES:
            raise ValueError(f"mode must be one of {sorted(MODES)}")
        return v

    @model_validator(mode="after")
    def _correct_le_total(self) -> "RunHistoryRow":
        if self.correct > self.total:
            raise ValueError("correct must be <= total")
        return self

    @field_validator("finished_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
