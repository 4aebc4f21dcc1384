from __future__ import annotations

"""CLI for AlgoQuest using SessionManager and the mode registry."""

import argparse
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from storage.store import export_ndjson, load_all, query_trend

from .. import __version__
from ..config.config import load_config, validate_config
from ..errors import QuizError
from ..quiz.models import HOMEPAGE, RESULTS
from ..stats.stats import format_summary
from ..storage.store import JsonFileStore, SessionStore, StatsStore
from ..util.randomness import seed_if_needed
from . import explain
from .events import EventBus
from .mode_registry import item_models, list_modes
from .session_manager import SessionManager

LETTERS = "ABCD"


def _build_ui() -> Dict[str, Callable[..., Any]]:
    def ask(prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return "q"

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


class TerminalPresenter:
    """Renders orchestrator events as plain text."""

    def __init__(self, inform: Callable[[str], None], *, show_explanations: bool = True) -> None:
        self.inform = inform
        self.show_explanations = show_explanations
        self.current_item: Any = None
        self.resume_offer: Optional[str] = None

    def handlers(self) -> Dict[str, Callable[[Dict[str, Any]], None]]:
        return {
            "render_home": self.on_home,
            "render_question": self.on_question,
            "render_card": self.on_card,
            "render_feedback": self.on_feedback,
            "render_results": self.on_results,
            "render_resume_prompt": self.on_resume_prompt,
            "load_failed": self.on_load_failed,
        }

    def on_home(self, payload: Dict[str, Any]) -> None:
        self.inform("\n=== AlgoQuest ===")
        counts = payload.get("counts", {})
        for i, m in enumerate(list_modes(), start=1):
            self.inform(f"  {i}. {m.name} ({counts.get(m.id, 0)} {m.item_noun})")
        self.inform(format_summary(payload["stats"]))

    def on_question(self, payload: Dict[str, Any]) -> None:
        item, state = payload["item"], payload["state"]
        self.current_item = item
        header = f"\nQ{state.current_index + 1}/{state.total}  score {state.score}"
        if payload["mode"] != "scenario":
            header += f"  streak {state.streak}"
        else:
            header += f"  correct {state.correct}  [{item.difficulty}, +{item.points} pts]"
        self.inform(header)
        self.inform(item.prompt)
        for letter, opt in zip(LETTERS, payload["options"]):
            self.inform(f"  {letter}) {opt.label}")
        if state.answered:
            self.inform("(already answered; press Enter to continue)")

    def on_card(self, payload: Dict[str, Any]) -> None:
        card, state = payload["card"], payload["state"]
        self.current_item = card
        self.inform(f"\nCard {state.current_index + 1}/{state.total}: {card.pattern}")
        if state.is_flipped:
            self.inform("  Signals:")
            for s in card.signals:
                self.inform(f"    + {s}")
            self.inform("  Anti-signals:")
            for s in card.anti_signals:
                self.inform(f"    - {s}")

    def on_feedback(self, payload: Dict[str, Any]) -> None:
        outcome = payload["outcome"]
        if outcome.correct:
            bonus = f" +{outcome.points} points" if payload["mode"] == "scenario" else ""
            self.inform(f"Correct!{bonus}")
        else:
            self.inform(f"Wrong! The answer is {outcome.correct_label}")
        if self.show_explanations and outcome.explanation:
            self.inform(outcome.explanation)

    def on_results(self, payload: Dict[str, Any]) -> None:
        s, v = payload["summary"], payload["verdict"]
        self.inform(f"\n{v.icon} {v.title}")
        self.inform(f"Score: {s.score}   Correct: {s.correct}/{s.total}   ({s.percentage}%)")
        self.inform(format_summary(payload["stats"]))

    def on_resume_prompt(self, payload: Dict[str, Any]) -> None:
        self.resume_offer = payload["progress_text"]
        self.inform(f"\nUnfinished session found: {payload['progress_text']}")

    def on_load_failed(self, payload: Dict[str, Any]) -> None:
        self.inform(f"Could not load question banks: {payload['error']}")


def _mode_by_key(key: str) -> Optional[str]:
    modes = list_modes()
    if key.isdigit() and 1 <= int(key) <= len(modes):
        return modes[int(key) - 1].id
    for m in modes:
        if m.id == key:
            return m.id
    return None


def _quiz_step(mgr: SessionManager, presenter: TerminalPresenter, ask: Callable[[str], str], inform: Callable[[str], None]) -> bool:
    mode_id = mgr.active_mode
    if mode_id is None:
        return True
    state = mgr.runs[mode_id]
    engine = mgr.engines[mode_id]
    if not engine.mode.answerable:
        cmd = ask("[f]lip [n]ext [p]rev [g N] jump [s]huffle [b]ack: ").strip().lower()
        if cmd == "f":
            mgr.flip()
        elif cmd == "n":
            mgr.next()
        elif cmd == "p":
            mgr.previous()
        elif cmd.startswith("g"):
            arg = cmd[1:].strip()
            if arg.isdigit():
                mgr.go_to(int(arg) - 1)
            else:
                inform("Usage: g <card number>")
        elif cmd == "s":
            mgr.reshuffle()
            inform("Shuffled!")
        elif cmd in ("b", "q"):
            mgr.go_home()
            return cmd != "q"
        return True

    if state.answered:
        cmd = ask("[Enter] next, [b]ack: ").strip().lower()
        if cmd in ("b", "q"):
            mgr.go_home()
            return cmd != "q"
        mgr.next()
        return True

    extra = ", [h]ints" if mode_id == "scenario" else ""
    cmd = ask(f"Answer A-{LETTERS[len(mgr.presented_options) - 1]}{extra}, [b]ack: ").strip().upper()
    if cmd in ("B", "Q"):
        mgr.go_home()
        return cmd != "Q"
    if cmd == "H" and mode_id == "scenario":
        hints = getattr(presenter.current_item, "hints", [])
        inform("Hints: " + (", ".join(hints) if hints else "none"))
        return True
    if len(cmd) == 1 and cmd in LETTERS[: len(mgr.presented_options)]:
        mgr.answer(LETTERS.index(cmd))
    else:
        inform("Pick one of the listed letters.")
    return True


def run_interactive(mgr: SessionManager, presenter: TerminalPresenter, ui: Dict[str, Callable[..., Any]], start: Optional[str] = None) -> int:
    ask, inform = ui["ask"], ui["inform"]
    if not mgr.startup():
        return 1
    if mgr.pending_resume is not None:
        if ask("Resume it? [y/n]: ").strip().lower().startswith("y"):
            mgr.accept_resume()
        else:
            mgr.decline_resume()
    if start and mgr.view == HOMEPAGE:
        mgr.start_mode(start)

    while True:
        try:
            if mgr.view == HOMEPAGE:
                cmd = ask("Pick a mode (1-4), [q]uit: ").strip().lower()
                if cmd == "q":
                    return 0
                mode_id = _mode_by_key(cmd)
                if mode_id is None:
                    inform("Unknown choice.")
                    continue
                mgr.start_mode(mode_id)
            elif mgr.view == RESULTS:
                cmd = ask("[p]lay again, [h]ome, [q]uit: ").strip().lower()
                if cmd == "p":
                    mgr.play_again()
                elif cmd == "h":
                    mgr.go_home()
                elif cmd == "q":
                    return 0
            elif not _quiz_step(mgr, presenter, ask, inform):
                return 0
        except QuizError as e:
            inform(str(e))


def _storage_for(cfg: Dict[str, Any]) -> JsonFileStore:
    return JsonFileStore(Path(str(cfg["storage"]["data_dir"])))


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="algoquest")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    sub = p.add_subparsers(dest="cmd")

    pp = sub.add_parser("play", help="Start the interactive quiz")
    pp.add_argument("--config", default=None)
    pp.add_argument("--mode", default=None, help="Jump straight into a mode")
    pp.add_argument("--explain", action="store_true")

    sub.add_parser("modes", help="List quiz modes")

    sp = sub.add_parser("stats", help="Show aggregate stats")
    sp.add_argument("--config", default=None)

    hp = sub.add_parser("history", help="Show finished runs")
    hp.add_argument("--config", default=None)
    hp.add_argument("--mode", default=None)
    hp.add_argument("--export", default=None, help="Write rows as NDJSON to this path")

    rp = sub.add_parser("reset", help="Delete persisted stats and/or session")
    rp.add_argument("--config", default=None)
    rp.add_argument("--stats", action="store_true")
    rp.add_argument("--session", action="store_true")

    args = p.parse_args(argv)

    if args.version:
        print(f"algoquest {__version__}")
        return 0
    if args.cmd is None:
        p.print_help()
        return 2

    if args.cmd == "modes":
        for m in list_modes():
            print(f"{m.id}: {m.name} - {m.description}")
        return 0

    cfg = validate_config(load_config(args.config))

    if args.cmd == "stats":
        print(format_summary(StatsStore(_storage_for(cfg), key=cfg["storage"]["stats_key"]).load()))
        return 0

    if args.cmd == "history":
        df = load_all(Path(cfg["history"]["data_dir"]))
        if args.mode:
            try:
                df = query_trend(df, mode=args.mode)
            except ValueError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 2
        if args.export:
            export_ndjson(df, Path(args.export))
            print(f"Wrote {len(df)} rows to {args.export}")
        elif df.empty:
            print("No finished runs yet.")
        else:
            print(df[["finished_at", "mode", "score", "correct", "total", "acc"]].tail(20).to_string(index=False))
        return 0

    if args.cmd == "reset":
        store = _storage_for(cfg)
        both = not (args.stats or args.session)
        if args.stats or both:
            StatsStore(store, key=cfg["storage"]["stats_key"]).clear()
        if args.session or both:
            SessionStore(store, item_models(), key=cfg["storage"]["session_key"]).clear()
        print("Reset done.")
        return 0

    # play
    if args.mode is not None and _mode_by_key(args.mode) is None:
        print(f"ERROR: Unknown mode '{args.mode}'", file=sys.stderr)
        return 2
    seed_if_needed()
    explain.enable(bool(args.explain or cfg["ui"]["explain"]))
    ui = _build_ui()
    bus = EventBus()
    presenter = TerminalPresenter(ui["inform"], show_explanations=cfg["ui"]["show_explanations"])
    bus.subscribe_all(presenter.handlers())
    mgr = SessionManager.from_config(cfg, bus=bus)
    return run_interactive(mgr, presenter, ui, start=_mode_by_key(args.mode) if args.mode else None)


if __name__ == "__main__":
    raise SystemExit(main())
