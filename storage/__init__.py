from .schema import MODES, DTYPES, RunHistoryRow
from .store import (
    init_store,
    validate_records,
    append_run_history,
    load_all,
    query_trend,
    export_ndjson,
)

__all__ = [
    "MODES",
    "DTYPES",
    "RunHistoryRow",
    "init_store",
    "validate_records",
    "append_run_history",
    "load_all",
    "query_trend",
    "export_ndjson",
]
