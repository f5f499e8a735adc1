from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

STATE_VERSION = "1"


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    fmt = _detect_format(p)
    data: Dict[str, Any]

    if fmt in {"yaml", "yml"}:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    """Persist the run record. Callers only ever put public config in here."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False) + "\n", encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def ensure_defaults(state: Dict[str, Any], *, mode: str) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding existing values)."""

    state.setdefault("version", STATE_VERSION)
    state["mode"] = mode
    state.setdefault("config", {})

    exe = state.setdefault("execution", {})
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("skipped_steps", [])
    exe.setdefault("warnings", [])
    exe.setdefault("errors", [])

    return state


def reset_run(state: Dict[str, Any]) -> None:
    """Clear per-run lists so a new invocation starts a fresh record."""

    exe = state.setdefault("execution", {})
    for key in ("completed_steps", "skipped_steps", "warnings", "errors"):
        exe[key] = []
    exe["current_step"] = None
    exe.pop("reboot_required", None)


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def mark_step_skipped(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    skipped = exe.setdefault("skipped_steps", [])
    if step_id not in skipped:
        skipped.append(step_id)


def record_warning(state: Dict[str, Any], step_id: str, reason: str) -> None:
    state.setdefault("execution", {}).setdefault("warnings", []).append({"step": step_id, "warning": reason})


def record_error(state: Dict[str, Any], step_id: str, reason: str) -> None:
    state.setdefault("execution", {}).setdefault("errors", []).append({"step": step_id, "error": reason})

