from __future__ import annotations

"""Parquet-backed run history using pandas + pyarrow.

Unit of data: one row per finished quiz run.
"""

from pathlib import Path

import pandas as pd

from .schema import DTYPES, MODES, RunHistoryRow


DATA_FILE = "run_history.parquet"


def _empty_df() -> pd.DataFrame:
    dtypes = DTYPES.copy()
    df = pd.DataFrame({k: pd.Series(dtype=v) for k, v in dtypes.items()})
    return df


def init_store(data_dir: Path) -> None:
    """Ensure the data directory and an empty Parquet file with the right schema exist."""
    data_dir = Path(data_dir).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATA_FILE
    if not path.exists():
        _empty_df().to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def validate_records(records: list[RunHistoryRow]) -> pd.DataFrame:
    """Validate a list of RunHistoryRow (or dicts) and return a DataFrame with proper dtypes."""
    if not isinstance(records, list):
        raise TypeError("records must be a list[RunHistoryRow]")
    rows = [r if isinstance(r, RunHistoryRow) else RunHistoryRow.model_validate(r) for r in records]
    if not rows:
        return _empty_df()
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df)


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.NA
        df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def append_run_history(df_new: pd.DataFrame, data_path: Path) -> None:
    """Append rows to the run history table.

    Reads existing rows, concatenates, fixes dtypes, drops rows sharing a run_id
    (last write wins) and writes back with zstd compression.
    """
    data_path = Path(data_path).expanduser()
    f = data_path / DATA_FILE
    if f.exists():
        df_old = pd.read_parquet(f, engine="pyarrow")
    else:
        data_path.mkdir(parents=True, exist_ok=True)
        df_old = _empty_df()
    df_new = _fix_dtypes(df_new.copy())
    if df_old.empty:
        combined = df_new
    else:
        combined = pd.concat([_fix_dtypes(df_old), df_new], ignore_index=True)
    combined = _fix_dtypes(combined)
    combined = combined.drop_duplicates(subset=["run_id"], keep="last")
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_path: Path) -> pd.DataFrame:
    """Load the full run history with dtypes enforced and an ``acc`` column (correct / total)."""
    f = Path(data_path).expanduser() / DATA_FILE
    if not f.exists():
        return _empty_df().assign(acc=pd.Series(dtype="float32"))
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))
    total = df["total"].astype("float32").where(df["total"] > 0, other=1.0)
    df["acc"] = (df["correct"].astype("float32") / total).astype("float32")
    return df


def query_trend(df: pd.DataFrame, *, mode: str) -> pd.DataFrame:
    """Rows for one mode, oldest first."""
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {mode}")
    dff = df[df["mode"].astype("string") == mode]
    return dff.sort_values("finished_at").reset_index(drop=True)


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")
