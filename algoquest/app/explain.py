from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the --explain flag (or ui.explain in config) to get one terse
JSON line per milestone: run started, answer graded, session saved, ...
"""

import json
import sys
from typing import Any, Dict

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    try:
        data = json.dumps(payload or {}, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        data = "{}"
    print(f"[EXPLAIN] {event} :: {data}", file=sys.stderr)


def warn(message: str) -> None:
    """Report a recoverable problem on stderr regardless of explain mode."""
    print(f"WARNING: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)
