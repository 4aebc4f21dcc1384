from __future__ import annotations

"""Session Manager: orchestrates views, modes, persistence and results.

States are the homepage, one active quiz per mode, and the results view.
Every state-changing action inside a quiz saves the session snapshot; leaving
the quiz (home, results) clears it. Rendering happens through EventBus
notifications only, so a front end subscribes and never reaches into state.
"""

import random
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..banks.loader import QuestionBanks, load_banks
from ..errors import BankLoadError, EngineError, TransitionError
from ..quiz.engine import QuizEngine
from ..quiz.models import (
    HOMEPAGE,
    QUIZ_VIEWS,
    RESULTS,
    AggregateStats,
    AnswerOutcome,
    Option,
    ResultsSummary,
    RunState,
    SessionSnapshot,
    mode_for_view,
)
from ..results.result_manager import ResultRecorder
from ..results.schema import verdict
from ..storage.store import JsonFileStore, KeyValueStore, SessionStore, StatsStore, has_resumable
from .events import EventBus
from .explain import error as report_error, trace as xtrace, warn
from .mode_registry import item_models, list_modes, make_engine

Scheduler = Callable[[float, Callable[[], None]], None]


def sleep_then_call(delay_s: float, callback: Callable[[], None]) -> None:
    """Default one-shot scheduler for a single-threaded front end."""
    if delay_s > 0:
        time.sleep(delay_s)
    callback()


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        *,
        store: KeyValueStore,
        bus: Optional[EventBus] = None,
        recorder: Optional[ResultRecorder] = None,
        banks_loader: Callable[..., QuestionBanks] = load_banks,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        scheduler: Scheduler = sleep_then_call,
    ) -> None:
        self.cfg = cfg
        self.bus = bus or EventBus()
        self.recorder = recorder
        self.rng = rng
        self.scheduler = scheduler
        self._banks_loader = banks_loader

        st = cfg.get("storage", {})
        self.session_store = SessionStore(
            store,
            item_models(),
            key=st.get("session_key", "algoquest-session"),
            ttl_seconds=float(st.get("session_ttl_hours", 24)) * 3600,
            clock=clock,
        )
        self.stats_store = StatsStore(store, key=st.get("stats_key", "algoquest-stats"))

        self.banks: Optional[QuestionBanks] = None
        self.stats = AggregateStats()
        self.engines: Dict[str, QuizEngine] = {}
        self.runs: Dict[str, RunState] = {m.id: RunState() for m in list_modes()}
        self.view = HOMEPAGE
        self.last_game_type: Optional[str] = None
        self.pending_resume: Optional[SessionSnapshot] = None
        self._options: List[Option] = []

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], **kwargs: Any) -> "SessionManager":
        store = JsonFileStore(Path(str(cfg["storage"]["data_dir"])))
        recorder = None
        if cfg.get("history", {}).get("enabled", False):
            recorder = ResultRecorder(cfg["history"]["data_dir"])
        return cls(cfg, store=store, recorder=recorder, **kwargs)

    # --- properties ------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self.banks is not None

    @property
    def active_mode(self) -> Optional[str]:
        return mode_for_view(self.view)

    @property
    def presented_options(self) -> List[Option]:
        return list(self._options)

    def counts(self) -> Dict[str, int]:
        return self.banks.counts() if self.banks else {}

    def progress_text(self, mode_id: str, state: RunState) -> str:
        engine = self.engines[mode_id]
        noun = engine.mode.item_noun.rstrip("s")
        text = f"{engine.mode.name}: {noun} {state.current_index + 1} of {state.total}"
        if engine.mode.answerable:
            text += f", score {state.score}"
        return text

    # --- startup & resume ------------------------------------------------

    def startup(self) -> bool:
        """Load banks and stats, then offer to resume a recent session.

        Returns False (staying on the homepage, nothing startable) when the
        banks fail to load.
        """
        banks_cfg = self.cfg.get("banks", {})
        try:
            banks = self._banks_loader(banks_cfg.get("dir"), banks_cfg.get("files"))
        except BankLoadError as e:
            report_error(str(e))
            self.bus.emit("load_failed", {"error": e})
            return False
        self.banks = banks
        quiz_cfg = self.cfg.get("quiz", {})
        self.engines = {
            m.id: make_engine(m.id, names=banks.names, rng=self.rng, params=quiz_cfg) for m in list_modes()
        }
        self.stats = self.stats_store.load()
        self.view = HOMEPAGE
        xtrace("startup", {"counts": banks.counts(), "stats": self.stats.to_json()})
        self._render_home()

        snapshot = self.session_store.load()
        mode_id = snapshot.active_mode if snapshot is not None else None
        if snapshot is not None and mode_id is not None and has_resumable(snapshot):
            self.pending_resume = snapshot
            self.bus.emit(
                "render_resume_prompt",
                {"mode": mode_id, "progress_text": self.progress_text(mode_id, snapshot.runs[mode_id])},
            )
        elif snapshot is not None:
            self.session_store.clear()
        return True

    def accept_resume(self) -> None:
        snapshot = self._take_pending()
        self.runs.update(snapshot.runs)
        self.view = snapshot.current_view
        xtrace("resume_accepted", {"view": self.view})
        self._render_current()

    def decline_resume(self) -> None:
        self._take_pending()
        self.session_store.clear()
        xtrace("resume_declined")
        self.view = HOMEPAGE
        self._render_home()

    def _take_pending(self) -> SessionSnapshot:
        if self.pending_resume is None:
            raise TransitionError("No session to resume")
        snapshot, self.pending_resume = self.pending_resume, None
        return snapshot

    # --- navigation --------------------------------------------------------

    def start_mode(self, mode_id: str) -> RunState:
        banks = self.banks
        if banks is None:
            raise TransitionError("Question banks are not loaded")
        if self.active_mode is not None:
            raise TransitionError(f"Leave the {self.active_mode} quiz before starting another")
        if self.pending_resume is not None:
            # Starting fresh declines the offer.
            self.pending_resume = None
            self.session_store.clear()
        engine = self.engines.get(mode_id)
        if engine is None:
            raise TransitionError(f"Unknown mode: {mode_id}")
        state = engine.initialize_run(banks.for_mode(mode_id))
        self.runs[mode_id] = state
        self.view = QUIZ_VIEWS[mode_id]
        self._save_session()
        self._render_current()
        return state

    def play_again(self) -> RunState:
        if self.view != RESULTS or self.last_game_type is None:
            raise TransitionError("Play again is only available from the results view")
        self.view = HOMEPAGE
        return self.start_mode(self.last_game_type)

    def go_home(self) -> None:
        """Back to the homepage from anywhere; an active run is abandoned."""
        if self.active_mode is not None:
            xtrace("run_abandoned", {"mode": self.active_mode})
        self.pending_resume = None
        self.session_store.clear()
        self.view = HOMEPAGE
        self._options = []
        self._render_home()

    # --- quiz actions ------------------------------------------------------

    def _active(self) -> tuple[str, QuizEngine, RunState]:
        mode_id = self.active_mode
        if mode_id is None:
            raise TransitionError(f"No quiz is active (view: {self.view})")
        return mode_id, self.engines[mode_id], self.runs[mode_id]

    def answer(self, choice: int | Option) -> AnswerOutcome:
        """Answer the current question with an option (or its index in the presented list)."""
        mode_id, engine, state = self._active()
        if state.answered:
            return AnswerOutcome(accepted=False, score=state.score, streak=state.streak)
        option = choice if isinstance(choice, Option) else self._option_at(choice)
        item = state.current_item
        if item is None:
            raise EngineError(f"The {mode_id} run has no current question")
        outcome = engine.submit_answer(state, option, item, self.stats)
        if outcome.best_streak_raised:
            self.stats_store.save(self.stats)
        self._save_session()
        self.bus.emit("render_feedback", {"mode": mode_id, "outcome": outcome, "state": state})
        if outcome.is_last:
            delay_s = int(self.cfg.get("quiz", {}).get("finish_delay_ms", 1500)) / 1000.0
            self.scheduler(delay_s, lambda: self._finish_if_current(mode_id, state))
        return outcome

    def _option_at(self, index: int) -> Option:
        if not 0 <= index < len(self._options):
            raise EngineError(f"Option {index} out of range (0..{len(self._options) - 1})")
        return self._options[index]

    def next(self) -> Optional[ResultsSummary]:
        """Advance to the next question/card; returns the summary when a run finishes."""
        mode_id, engine, state = self._active()
        if not engine.mode.answerable:
            if engine.next_card(state):
                self._save_session()
                self._render_current()
            return None
        result = engine.advance(state, self.stats)
        if result.summary is not None:
            self._complete(result.summary)
            return result.summary
        self._save_session()
        self._render_current()
        return None

    def _finish_if_current(self, mode_id: str, state: RunState) -> None:
        # The user may have left (or already finished) while the delay ran.
        if self.active_mode != mode_id or self.runs.get(mode_id) is not state:
            return
        if state.answered and state.is_last:
            self.next()

    def previous(self) -> None:
        _, engine, state = self._active()
        if engine.previous(state):
            self._save_session()
            self._render_current()

    def flip(self) -> bool:
        _, engine, state = self._active()
        flipped = engine.flip(state)
        self._save_session()
        self._render_current()
        return flipped

    def go_to(self, index: int) -> None:
        _, engine, state = self._active()
        engine.go_to(state, index)
        self._save_session()
        self._render_current()

    def reshuffle(self) -> None:
        _, engine, state = self._active()
        engine.reshuffle(state)
        self._save_session()
        self._render_current()

    # --- internals ---------------------------------------------------------

    def _complete(self, summary: ResultsSummary) -> None:
        self.stats_store.save(self.stats)
        self.session_store.clear()
        if self.recorder is not None:
            try:
                self.recorder.record(summary)
            except (OSError, ValueError) as e:
                warn(f"Could not record run history: {e}")
        self.last_game_type = summary.game_type
        self.view = RESULTS
        self._options = []
        self.bus.emit(
            "render_results",
            {"summary": summary, "verdict": verdict(summary.percentage), "stats": self.stats},
        )

    def _save_session(self) -> None:
        if self.active_mode is None:
            return
        self.session_store.save(SessionSnapshot(current_view=self.view, runs=dict(self.runs)))

    def _render_home(self) -> None:
        self.bus.emit("render_home", {"stats": self.stats, "counts": self.counts()})

    def _render_current(self) -> None:
        mode_id, engine, state = self._active()
        item = state.current_item
        if not engine.mode.answerable:
            self.bus.emit("render_card", {"mode": mode_id, "card": item, "state": state})
            return
        if self.banks is None or item is None:
            raise EngineError(f"The {mode_id} run has no current question")
        self._options = engine.build_option_set(item, self.banks.for_mode(mode_id))
        self.bus.emit(
            "render_question",
            {"mode": mode_id, "item": item, "options": list(self._options), "state": state},
        )
