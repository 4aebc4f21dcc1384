from __future__ import annotations

"""Quiz engine: one implementation for every mode.

The engine is stateless apart from its configuration; it mutates the RunState
and AggregateStats it is handed and returns plain result records. Persistence
and rendering are the caller's business.
"""

import random
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..app.explain import trace as xtrace
from ..banks.loader import AlgorithmNames
from ..banks.schema import BankItem
from ..errors import EngineError
from ..stats.stats import record_finished_run, record_streak
from ..util.randomness import shuffle
from .models import AdvanceResult, AggregateStats, AnswerOutcome, Option, ResultsSummary, RunState

if TYPE_CHECKING:
    from ..app.mode_registry import ModeMeta


class QuizEngine:
    def __init__(
        self,
        mode: "ModeMeta",
        names: Optional[AlgorithmNames] = None,
        rng: Optional[random.Random] = None,
        max_options: int = 4,
    ) -> None:
        self.mode = mode
        self.names = names if names is not None else AlgorithmNames()
        self.rng = rng
        self.max_options = max(2, int(max_options))

    # --- run setup -------------------------------------------------------

    def initialize_run(self, bank: Sequence[BankItem]) -> RunState:
        items = shuffle(bank, self.rng) if self.mode.shuffle_on_start else list(bank)
        if not items:
            raise EngineError(f"No items in the {self.mode.id} bank")
        xtrace("run_started", {"mode": self.mode.id, "items": len(items)})
        return RunState(items=items)

    # --- answerable modes -----------------------------------------------

    def _require_answerable(self) -> None:
        if not self.mode.answerable:
            raise EngineError(f"Mode {self.mode.id!r} has no answers")

    def build_option_set(self, item: BankItem, bank: Sequence[BankItem]) -> List[Option]:
        """Return the correct option plus up to ``max_options - 1`` distractors, shuffled."""
        self._require_answerable()
        distractors = self.mode.distractors
        if distractors is None:
            raise EngineError(f"Mode {self.mode.id!r} has no distractor strategy")
        wrong = distractors.wrong_options(item, bank, self.max_options - 1, self.rng)
        options = [Option(value=item.correct_id, label=self.names.label(item.correct_id), is_correct=True)]
        options += [Option(value=w, label=self.names.label(w), is_correct=False) for w in wrong]
        return shuffle(options, self.rng)

    def submit_answer(
        self, state: RunState, option: Option, item: BankItem, stats: AggregateStats
    ) -> AnswerOutcome:
        """Score ``option`` against ``item``; a second answer to the same item is ignored."""
        self._require_answerable()
        if state.answered:
            return AnswerOutcome(accepted=False, score=state.score, streak=state.streak)
        scoring = self.mode.scoring
        if scoring is None:
            raise EngineError(f"Mode {self.mode.id!r} has no scoring rule")
        state.answered = True

        raised = False
        points = 0
        if option.is_correct:
            points = scoring.points(item)
            state.score += points
            state.correct += 1
            if self.mode.tracks_streak:
                state.streak += 1
                raised = record_streak(stats, state.streak)
        elif self.mode.tracks_streak:
            state.streak = 0

        xtrace(
            "answer_submitted",
            {"mode": self.mode.id, "index": state.current_index, "answer": option.value, "correct": option.is_correct},
        )
        return AnswerOutcome(
            accepted=True,
            correct=option.is_correct,
            points=points,
            chosen=option,
            correct_value=item.correct_id,
            correct_label=self.names.label(item.correct_id),
            explanation=item.explanation_text,
            is_last=state.is_last,
            score=state.score,
            streak=state.streak,
            best_streak_raised=raised,
        )

    def advance(self, state: RunState, stats: AggregateStats) -> AdvanceResult:
        """Move to the next item, or finish the run when on the last one."""
        self._require_answerable()
        if not state.answered:
            raise EngineError("Cannot advance before the current question is answered")
        if state.is_last:
            return AdvanceResult(has_next=False, summary=self.finish(state, stats))
        state.current_index += 1
        state.answered = False
        state.is_flipped = False
        return AdvanceResult(has_next=True)

    def finish(self, state: RunState, stats: AggregateStats) -> ResultsSummary:
        record_finished_run(stats, state.score)
        summary = ResultsSummary.from_run(state, self.mode.id)
        xtrace("run_finished", summary.to_json())
        return summary

    # --- flashcard mode -------------------------------------------------

    def _require_flashcards(self) -> None:
        if self.mode.answerable:
            raise EngineError(f"Mode {self.mode.id!r} is not a flashcard deck")

    def flip(self, state: RunState) -> bool:
        self._require_flashcards()
        state.is_flipped = not state.is_flipped
        return state.is_flipped

    def previous(self, state: RunState) -> bool:
        self._require_flashcards()
        if state.current_index <= 0:
            return False
        state.current_index -= 1
        state.is_flipped = False
        return True

    def next_card(self, state: RunState) -> bool:
        self._require_flashcards()
        if state.is_last:
            return False
        state.current_index += 1
        state.is_flipped = False
        return True

    def go_to(self, state: RunState, index: int) -> None:
        self._require_flashcards()
        if not 0 <= index < state.total:
            raise EngineError(f"Card index {index} out of range (0..{state.total - 1})")
        state.current_index = index
        state.is_flipped = False

    def reshuffle(self, state: RunState) -> None:
        self._require_flashcards()
        state.items = shuffle(state.items, self.rng)
        state.current_index = 0
        state.is_flipped = False

    # --- display helpers -------------------------------------------------

    @staticmethod
    def progress(state: RunState) -> float:
        """Share of items completed before the current one, in percent."""
        if not state.total:
            return 0.0
        return 100.0 * state.current_index / state.total
