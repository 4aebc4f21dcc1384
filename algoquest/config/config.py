from __future__ import annotations

"""Configuration loading and validation for AlgoQuest.

This module loads the packaged YAML defaults, overlays an optional user file,
then fills in missing values and sanity-checks the result.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..app.explain import warn
from ..banks.loader import DEFAULT_FILES

REWARD_MODES = {"signal", "complexity"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"ERROR: Config file {path} is not valid YAML: {e}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"ERROR: Config file {path} must contain a mapping", file=sys.stderr)
        sys.exit(1)
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from the packaged defaults plus an optional YAML file.

    Args:
        path: Optional path to a YAML config whose values override the defaults.

    Returns:
        A dictionary with configuration values.
    """
    cfg = _load_yaml(Path(__file__).with_name("defaults.yml"))
    if path:
        cfg = _merge(cfg, _load_yaml(Path(path)))
    return cfg


def _positive_number(section: Dict[str, Any], key: str, default: float, *, integer: bool = True) -> None:
    value = section.get(key, default)
    try:
        num = int(value) if integer else float(value)
    except (TypeError, ValueError):
        num = -1
    if num <= 0:
        warn(f"Invalid {key} {value!r}, using {default}.")
        num = default
    section[key] = num


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated configuration dictionary.
    """
    for section in ("banks", "storage", "quiz", "history", "ui"):
        if not isinstance(cfg.get(section), dict):
            cfg[section] = {}

    banks = cfg["banks"]
    storage = cfg["storage"]
    quiz = cfg["quiz"]
    history = cfg["history"]
    ui = cfg["ui"]

    banks.setdefault("dir", None)
    files = banks.get("files")
    if not isinstance(files, dict):
        files = {}
    unknown = set(files) - set(DEFAULT_FILES)
    for name in sorted(unknown):
        warn(f"Unknown bank '{name}' in banks.files, ignoring.")
        files.pop(name)
    banks["files"] = {**DEFAULT_FILES, **files}

    storage.setdefault("data_dir", "~/.algoquest")
    storage.setdefault("session_key", "algoquest-session")
    storage.setdefault("stats_key", "algoquest-stats")
    _positive_number(storage, "session_ttl_hours", 24, integer=False)
    if storage["session_key"] == storage["stats_key"]:
        warn("storage.session_key and storage.stats_key must differ; using defaults.")
        storage["session_key"] = "algoquest-session"
        storage["stats_key"] = "algoquest-stats"

    quiz.setdefault("finish_delay_ms", 1500)
    try:
        quiz["finish_delay_ms"] = max(0, int(quiz["finish_delay_ms"]))
    except (TypeError, ValueError):
        warn(f"Invalid finish_delay_ms {quiz['finish_delay_ms']!r}, using 1500.")
        quiz["finish_delay_ms"] = 1500
    _positive_number(quiz, "max_options", 4)
    if quiz["max_options"] < 2:
        warn("max_options must be at least 2, using 4.")
        quiz["max_options"] = 4
    rewards = quiz.get("rewards")
    if not isinstance(rewards, dict):
        rewards = {}
    for mode_id in sorted(set(rewards) - REWARD_MODES):
        warn(f"Mode '{mode_id}' does not use a fixed reward, ignoring.")
        rewards.pop(mode_id)
    for mode_id in sorted(REWARD_MODES):
        _positive_number(rewards, mode_id, 10)
    quiz["rewards"] = rewards

    history.setdefault("enabled", True)
    history["enabled"] = bool(history["enabled"])
    if not history.get("data_dir"):
        history["data_dir"] = str(Path(str(storage["data_dir"])) / "history")

    ui.setdefault("explain", False)
    ui.setdefault("show_explanations", True)
    ui["explain"] = bool(ui["explain"])
    ui["show_explanations"] = bool(ui["show_explanations"])

    return cfg
