import json
import tempfile
import unittest
from pathlib import Path

from algoquest.app.mode_registry import item_models
from algoquest.banks.schema import PatternCard, SignalQuestion
from algoquest.quiz.models import AggregateStats, RunState, SessionSnapshot
from algoquest.storage.store import (
    SESSION_KEY,
    STATS_KEY,
    JsonFileStore,
    MemoryStore,
    SessionStore,
    StatsStore,
    has_resumable,
)

HOUR = 3600.0


class Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def signal_run() -> RunState:
    items = [
        SignalQuestion(signal=f"sig {i}", correctAlgorithm=f"a{i}", wrongOptions=["x", "y", "z"]) for i in range(3)
    ]
    return RunState(items=items, current_index=1, score=10, streak=1, correct=1, answered=True)


class SessionStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.kv = MemoryStore()
        self.clock = Clock()
        self.store = SessionStore(self.kv, item_models(), clock=self.clock)

    def test_round_trip_keeps_runs_and_stamps_time(self) -> None:
        run = signal_run()
        self.store.save(SessionSnapshot(current_view="signal-quiz", runs={"signal": run}))
        raw = json.loads(self.kv.get(SESSION_KEY))
        self.assertEqual(raw["currentView"], "signal-quiz")
        self.assertEqual(raw["timestamp"], int(self.clock.now * 1000))
        self.assertEqual(raw["signal"]["currentIndex"], 1)
        self.assertEqual(raw["signal"]["items"][0]["correctAlgorithm"], "a0")
        self.assertEqual(raw["pattern"]["items"], [])

        loaded = self.store.load()
        self.assertIsNotNone(loaded)
        self.assertEqual(loaded.active_mode, "signal")
        back = loaded.runs["signal"]
        self.assertEqual(back.items, run.items)
        self.assertEqual((back.current_index, back.score, back.streak, back.answered), (1, 10, 1, True))

    def test_snapshot_within_ttl_survives(self) -> None:
        self.store.save(SessionSnapshot(current_view="signal-quiz", runs={"signal": signal_run()}))
        self.clock.now += 23 * HOUR
        self.assertIsNotNone(self.store.load())

    def test_expired_snapshot_is_cleared(self) -> None:
        self.store.save(SessionSnapshot(current_view="signal-quiz", runs={"signal": signal_run()}))
        self.clock.now += 25 * HOUR
        self.assertIsNone(self.store.load())
        self.assertIsNone(self.kv.get(SESSION_KEY))

    def test_corrupt_snapshot_is_cleared(self) -> None:
        self.kv.set(SESSION_KEY, "{broken")
        self.assertIsNone(self.store.load())
        self.assertIsNone(self.kv.get(SESSION_KEY))

    def test_non_finite_timestamp_is_cleared(self) -> None:
        for ts in ("1e400", "Infinity", "NaN"):
            self.kv.set(SESSION_KEY, '{"currentView":"signal-quiz","timestamp":' + ts + "}")
            self.assertIsNone(self.store.load(), ts)
            self.assertIsNone(self.kv.get(SESSION_KEY))

    def test_bad_index_is_rejected(self) -> None:
        self.store.save(SessionSnapshot(current_view="signal-quiz", runs={"signal": signal_run()}))
        raw = json.loads(self.kv.get(SESSION_KEY))
        raw["signal"]["currentIndex"] = 7
        self.kv.set(SESSION_KEY, json.dumps(raw))
        self.assertIsNone(self.store.load())


class ResumableTests(unittest.TestCase):
    def test_requires_quiz_view_and_started_run(self) -> None:
        self.assertFalse(has_resumable(None))
        self.assertFalse(has_resumable(SessionSnapshot(current_view="homepage", runs={"signal": signal_run()})))
        self.assertFalse(has_resumable(SessionSnapshot(current_view="results", runs={"signal": signal_run()})))
        self.assertFalse(has_resumable(SessionSnapshot(current_view="signal-quiz", runs={"signal": RunState()})))
        self.assertTrue(has_resumable(SessionSnapshot(current_view="signal-quiz", runs={"signal": signal_run()})))

    def test_other_mode_run_does_not_count(self) -> None:
        cards = RunState(items=[PatternCard(pattern="P")])
        snap = SessionSnapshot(current_view="signal-quiz", runs={"pattern": cards, "signal": RunState()})
        self.assertFalse(has_resumable(snap))


class StatsStoreTests(unittest.TestCase):
    def test_defaults_when_absent(self) -> None:
        self.assertEqual(StatsStore(MemoryStore()).load(), AggregateStats())

    def test_round_trip(self) -> None:
        kv = MemoryStore()
        store = StatsStore(kv)
        store.save(AggregateStats(games_played=3, best_streak=7, total_points=120))
        self.assertEqual(json.loads(kv.get(STATS_KEY)), {"gamesPlayed": 3, "bestStreak": 7, "totalPoints": 120})
        self.assertEqual(store.load(), AggregateStats(3, 7, 120))

    def test_corrupt_stats_reset_to_defaults(self) -> None:
        for raw in ("not json", '{"gamesPlayed": "three"}', '{"bestStreak": -1}', "[1, 2]"):
            kv = MemoryStore({STATS_KEY: raw})
            self.assertEqual(StatsStore(kv).load(), AggregateStats(), raw)
            self.assertIsNone(kv.get(STATS_KEY))


class JsonFileStoreTests(unittest.TestCase):
    def test_undecodable_records_treated_as_absent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            data = Path(tmp)
            (data / f"{SESSION_KEY}.json").write_bytes(b"\xff\xfe{bad")
            (data / f"{STATS_KEY}.json").write_bytes(b"\xff\xfe{bad")
            store = JsonFileStore(data)
            self.assertIsNone(SessionStore(store, item_models()).load())
            self.assertEqual(StatsStore(store).load(), AggregateStats())
            self.assertFalse((data / f"{SESSION_KEY}.json").exists())
            self.assertFalse((data / f"{STATS_KEY}.json").exists())

    def test_set_get_delete(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = JsonFileStore(Path(tmp) / "nested")
            self.assertIsNone(store.get("k"))
            store.set("k", '{"a": 1}')
            self.assertEqual(store.get("k"), '{"a": 1}')
            self.assertTrue((Path(tmp) / "nested" / "k.json").exists())
            store.delete("k")
            store.delete("k")
            self.assertIsNone(store.get("k"))


if __name__ == "__main__":
    unittest.main()
