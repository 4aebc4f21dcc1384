from .store import (
    SESSION_KEY,
    STATS_KEY,
    SESSION_TTL_SECONDS,
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
    SessionStore,
    StatsStore,
    has_resumable,
)

__all__ = [
    "SESSION_KEY",
    "STATS_KEY",
    "SESSION_TTL_SECONDS",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "SessionStore",
    "StatsStore",
    "has_resumable",
]
