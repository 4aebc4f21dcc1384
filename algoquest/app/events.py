from __future__ import annotations

"""Tiny pub/sub event bus between the orchestrator and the presentation layer.

Events emitted (payload is a dict):
- render_home: {stats, counts}
- render_question: {mode, item, options, state}
- render_card: {mode, card, state}
- render_feedback: {mode, outcome, state}
- render_results: {summary, verdict, stats}
- render_resume_prompt: {mode, progress_text}
- load_failed: {error}
"""

from typing import Any, Callable, Dict, List

from .explain import warn

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Handler]] = {}

    def subscribe(self, event: str, handler: Handler) -> None:
        self._subs.setdefault(event, []).append(handler)

    def subscribe_all(self, handlers: Dict[str, Handler]) -> None:
        for event, handler in handlers.items():
            self.subscribe(event, handler)

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for h in self._subs.get(event, []):
            try:
                h(payload)
            except Exception as e:
                # A broken renderer must not corrupt quiz state; report and keep going.
                warn(f"handler for {event!r} failed: {e!r}")
