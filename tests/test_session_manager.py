import tempfile
import unittest
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from algoquest.app.events import EventBus
from algoquest.app.session_manager import SessionManager
from algoquest.banks.loader import AlgorithmNames, QuestionBanks
from algoquest.banks.schema import ComplexityQuestion, PatternCard, Scenario, SignalQuestion
from algoquest.config.config import validate_config
from algoquest.errors import BankLoadError, EngineError, TransitionError
from algoquest.quiz.models import HOMEPAGE, RESULTS
from algoquest.storage.store import SESSION_KEY, STATS_KEY, JsonFileStore, MemoryStore
from algoquest.util.randomness import make_rng


def make_banks() -> QuestionBanks:
    return QuestionBanks(
        signal=[
            SignalQuestion(
                id=f"s{i}",
                signal=f"signal {i}",
                correctAlgorithm=f"algo_{i}",
                wrongOptions=["wrong_a", "wrong_b", "wrong_c"],
            )
            for i in range(10)
        ],
        pattern=[PatternCard(pattern=p, signals=["s"], antiSignals=["a"]) for p in ("A", "B", "C")],
        scenario=[
            Scenario(problemDescription=f"p{i}", points=10 * (i + 1), correctAnswer=a)
            for i, a in enumerate(["dijkstra", "bfs_graph", "dp_linear", "greedy"])
        ],
        complexity=[ComplexityQuestion(question="q", correctAnswer="O(1)", wrongOptions=["O(n)", "O(log n)"])],
        names=AlgorithmNames({"algo_0": "Algorithm Zero"}),
    )


class FakeRecorder:
    def __init__(self) -> None:
        self.summaries: List[Any] = []

    def record(self, summary: Any) -> str:
        self.summaries.append(summary)
        return f"run-{len(self.summaries)}"


class Clock:
    def __init__(self) -> None:
        self.now = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now


def immediate(delay_s: float, callback: Callable[[], None]) -> None:
    callback()


class Deferred:
    def __init__(self) -> None:
        self.pending: List[Tuple[float, Callable[[], None]]] = []

    def __call__(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.pending.append((delay_s, callback))

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for _, cb in pending:
            cb()


class SessionManagerTestBase(unittest.TestCase):
    def setUp(self) -> None:
        self.kv = MemoryStore()
        self.clock = Clock()
        self.recorder = FakeRecorder()
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def make_manager(self, scheduler: Callable[..., None] = immediate, loader: Optional[Callable[..., Any]] = None) -> SessionManager:
        bus = EventBus()
        for name in (
            "render_home",
            "render_question",
            "render_card",
            "render_feedback",
            "render_results",
            "render_resume_prompt",
            "load_failed",
        ):
            bus.subscribe(name, lambda payload, name=name: self.events.append((name, payload)))
        return SessionManager(
            validate_config({}),
            store=self.kv,
            bus=bus,
            recorder=self.recorder,
            banks_loader=loader or (lambda bank_dir, files: make_banks()),
            rng=make_rng(17),
            clock=self.clock,
            scheduler=scheduler,
        )

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]

    @staticmethod
    def correct_index(mgr: SessionManager) -> int:
        return next(i for i, o in enumerate(mgr.presented_options) if o.is_correct)

    @staticmethod
    def wrong_index(mgr: SessionManager) -> int:
        return next(i for i, o in enumerate(mgr.presented_options) if not o.is_correct)


class FullRunTests(SessionManagerTestBase):
    def test_perfect_signal_run(self) -> None:
        mgr = self.make_manager()
        self.assertTrue(mgr.startup())
        mgr.start_mode("signal")
        self.assertEqual(mgr.view, "signal-quiz")
        self.assertIsNotNone(self.kv.get(SESSION_KEY))

        for i in range(10):
            self.assertEqual(len(mgr.presented_options), 4)
            mgr.answer(self.correct_index(mgr))
            if i < 9:
                mgr.next()

        self.assertEqual(mgr.view, RESULTS)
        name, payload = self.events[-1]
        self.assertEqual(name, "render_results")
        summary = payload["summary"]
        self.assertEqual((summary.score, summary.correct, summary.total, summary.percentage), (100, 10, 10, 100))
        self.assertEqual(payload["verdict"].title, "Outstanding!")
        self.assertEqual(mgr.stats.games_played, 1)
        self.assertEqual(mgr.stats.total_points, 100)
        self.assertEqual(mgr.stats.best_streak, 10)
        self.assertIsNone(self.kv.get(SESSION_KEY))
        self.assertIn('"gamesPlayed": 1', self.kv.get(STATS_KEY))
        self.assertEqual(len(self.recorder.summaries), 1)

    def test_answer_is_idempotent(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("signal")
        first = mgr.answer(self.correct_index(mgr))
        second = mgr.answer(self.wrong_index(mgr))
        self.assertTrue(first.accepted)
        self.assertFalse(second.accepted)
        self.assertEqual(mgr.runs["signal"].score, 10)
        self.assertEqual(self.event_names().count("render_feedback"), 1)

    def test_best_streak_saved_immediately(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("signal")
        mgr.answer(self.correct_index(mgr))
        self.assertIn('"bestStreak": 1', self.kv.get(STATS_KEY))

    def test_next_before_answer_rejected(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("signal")
        with self.assertRaises(EngineError):
            mgr.next()

    def test_play_again_restarts_same_mode(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("complexity")
        mgr.answer(self.wrong_index(mgr))
        self.assertEqual(mgr.view, RESULTS)
        self.assertEqual(self.events[-1][1]["verdict"].title, "Keep Practicing!")
        state = mgr.play_again()
        self.assertEqual(mgr.view, "complexity-quiz")
        self.assertEqual((state.current_index, state.score, state.answered), (0, 0, False))

    def test_play_again_only_from_results(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        with self.assertRaises(TransitionError):
            mgr.play_again()

    def test_cannot_start_while_quiz_active(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("signal")
        with self.assertRaises(TransitionError):
            mgr.start_mode("scenario")


class DeferredFinishTests(SessionManagerTestBase):
    def test_finish_waits_for_scheduler(self) -> None:
        deferred = Deferred()
        mgr = self.make_manager(scheduler=deferred)
        mgr.startup()
        mgr.start_mode("complexity")
        mgr.answer(self.correct_index(mgr))
        self.assertEqual(mgr.view, "complexity-quiz")
        self.assertEqual(deferred.pending[0][0], 1.5)
        deferred.run_all()
        self.assertEqual(mgr.view, RESULTS)

    def test_leaving_before_delay_skips_finish(self) -> None:
        deferred = Deferred()
        mgr = self.make_manager(scheduler=deferred)
        mgr.startup()
        mgr.start_mode("complexity")
        mgr.answer(self.correct_index(mgr))
        mgr.go_home()
        deferred.run_all()
        self.assertEqual(mgr.view, HOMEPAGE)
        self.assertEqual(mgr.stats.games_played, 0)
        self.assertEqual(self.recorder.summaries, [])


class NavigationTests(SessionManagerTestBase):
    def test_go_home_clears_session(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("scenario")
        self.assertIsNotNone(self.kv.get(SESSION_KEY))
        mgr.go_home()
        self.assertEqual(mgr.view, HOMEPAGE)
        self.assertIsNone(self.kv.get(SESSION_KEY))
        self.assertEqual(self.events[-1][0], "render_home")

    def test_flashcards_render_cards(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("pattern")
        self.assertEqual(self.events[-1][0], "render_card")
        self.assertTrue(mgr.flip())
        self.assertTrue(self.events[-1][1]["state"].is_flipped)
        mgr.next()
        self.assertEqual(mgr.runs["pattern"].current_index, 1)
        self.assertFalse(mgr.runs["pattern"].is_flipped)
        mgr.previous()
        mgr.go_to(2)
        mgr.next()
        self.assertEqual(mgr.runs["pattern"].current_index, 2)
        mgr.reshuffle()
        self.assertEqual(mgr.runs["pattern"].current_index, 0)

    def test_actions_need_active_quiz(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        with self.assertRaises(TransitionError):
            mgr.answer(0)
        with self.assertRaises(TransitionError):
            mgr.flip()


class ResumeTests(SessionManagerTestBase):
    def _leave_unfinished(self) -> None:
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("signal")
        mgr.answer(self.correct_index(mgr))
        mgr.next()
        self.events.clear()

    def test_accept_resume_restores_run(self) -> None:
        self._leave_unfinished()
        mgr = self.make_manager()
        self.assertTrue(mgr.startup())
        self.assertEqual(self.event_names(), ["render_home", "render_resume_prompt"])
        self.assertEqual(self.events[-1][1]["progress_text"], "Signal Quiz: Question 2 of 10, score 10")
        mgr.accept_resume()
        self.assertEqual(mgr.view, "signal-quiz")
        state = mgr.runs["signal"]
        self.assertEqual((state.current_index, state.score, state.streak), (1, 10, 1))
        self.assertEqual(self.events[-1][0], "render_question")

    def test_decline_resume_clears(self) -> None:
        self._leave_unfinished()
        mgr = self.make_manager()
        mgr.startup()
        mgr.decline_resume()
        self.assertEqual(mgr.view, HOMEPAGE)
        self.assertIsNone(self.kv.get(SESSION_KEY))
        with self.assertRaises(TransitionError):
            mgr.accept_resume()

    def test_stale_session_not_offered(self) -> None:
        self._leave_unfinished()
        self.clock.now += 25 * 3600
        mgr = self.make_manager()
        mgr.startup()
        self.assertNotIn("render_resume_prompt", self.event_names())
        self.assertIsNone(mgr.pending_resume)
        self.assertIsNone(self.kv.get(SESSION_KEY))

    def test_starting_fresh_declines_offer(self) -> None:
        self._leave_unfinished()
        mgr = self.make_manager()
        mgr.startup()
        mgr.start_mode("scenario")
        self.assertIsNone(mgr.pending_resume)
        self.assertEqual(mgr.view, "scenario-quiz")


class LoadFailureTests(SessionManagerTestBase):
    def test_failed_load_stays_home(self) -> None:
        def broken(bank_dir: Any, files: Any) -> QuestionBanks:
            raise BankLoadError("signal_questions.json", "file not found")

        mgr = self.make_manager(loader=broken)
        self.assertFalse(mgr.startup())
        self.assertEqual(self.event_names(), ["load_failed"])
        self.assertFalse(mgr.ready)
        self.assertEqual(mgr.view, HOMEPAGE)
        with self.assertRaises(TransitionError):
            mgr.start_mode("signal")


class CorruptStorageTests(SessionManagerTestBase):
    def test_startup_survives_undecodable_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            data = Path(tmp)
            (data / f"{SESSION_KEY}.json").write_bytes(b"\xff\xfe{bad")
            (data / f"{STATS_KEY}.json").write_bytes(b"\xff\xfe{bad")
            self.kv = JsonFileStore(data)
            mgr = self.make_manager()
            self.assertTrue(mgr.startup())
            self.assertEqual(self.event_names(), ["render_home"])
            self.assertEqual(mgr.stats.games_played, 0)
            self.assertIsNone(mgr.pending_resume)


if __name__ == "__main__":
    unittest.main()
