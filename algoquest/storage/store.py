from __future__ import annotations

"""Durable key/value records for the session snapshot and aggregate stats.

Two independent records live in the same store:
- stats (``algoquest-stats``): never expires, overwritten after each change.
- session (``algoquest-session``): the in-progress snapshot, stale after a TTL.

Both are whole-record JSON replacements; a record that fails to parse is
treated as absent and removed so corrupt data never reaches the engine.
"""

import json
import os
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Type

from ..app.explain import trace as xtrace
from ..banks.schema import BankItem
from ..quiz.models import QUIZ_VIEWS, AggregateStats, SessionSnapshot

SESSION_KEY = "algoquest-session"
STATS_KEY = "algoquest-stats"
SESSION_TTL_SECONDS = 24 * 60 * 60


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store; what tests and throwaway sessions use."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One ``<key>.json`` file per record under ``data_dir``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir).expanduser()

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        p = self._path(key)
        try:
            return p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        p = self._path(key)
        tmp = p.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, p)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


def has_resumable(snapshot: Optional[SessionSnapshot]) -> bool:
    """True when the snapshot was taken inside one of the quiz views with a run in progress."""
    if snapshot is None or snapshot.current_view not in QUIZ_VIEWS.values():
        return False
    run = snapshot.runs.get(snapshot.active_mode or "")
    return run is not None and run.started


class SessionStore:
    def __init__(
        self,
        store: KeyValueStore,
        item_models: Dict[str, Type[BankItem]],
        *,
        key: str = SESSION_KEY,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.item_models = item_models
        self.key = key
        self.ttl_seconds = float(ttl_seconds)
        self.clock = clock

    def save(self, snapshot: SessionSnapshot) -> None:
        snapshot.timestamp = int(self.clock() * 1000)
        self.store.set(self.key, json.dumps(snapshot.to_json(), separators=(",", ":")))
        xtrace("session_saved", {"view": snapshot.current_view, "ts": snapshot.timestamp})

    def load(self) -> Optional[SessionSnapshot]:
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return None
            snapshot = SessionSnapshot.from_json(json.loads(raw), self.item_models)
        except (ValueError, KeyError, TypeError) as e:
            xtrace("session_discarded", {"reason": str(e)})
            self.clear()
            return None
        age = self.clock() - snapshot.timestamp / 1000.0
        if age > self.ttl_seconds:
            xtrace("session_expired", {"age_s": int(age)})
            self.clear()
            return None
        return snapshot

    def clear(self) -> None:
        self.store.delete(self.key)


class StatsStore:
    def __init__(self, store: KeyValueStore, *, key: str = STATS_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> AggregateStats:
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return AggregateStats()
            return AggregateStats.from_json(json.loads(raw))
        except (ValueError, TypeError) as e:
            xtrace("stats_discarded", {"reason": str(e)})
            self.clear()
            return AggregateStats()

    def save(self, stats: AggregateStats) -> None:
        self.store.set(self.key, json.dumps(stats.to_json()))

    def clear(self) -> None:
        self.store.delete(self.key)
