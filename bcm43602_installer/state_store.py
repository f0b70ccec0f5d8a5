from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_REPORT_PATH = "/var/lib/bcm43602-installer/last-run.json"


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def new_state(*, version: str, config: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "version": version,
        "config": dict(config),
        "options": dict(options),
        "system": {},
        "execution": {
            "current_step": None,
            "results": {},
            "decisions": {},
            "warnings": [],
        },
    }


def record_result(
    state: Dict[str, Any],
    step_id: str,
    status: str,
    message: str,
    details: Dict[str, Any],
) -> None:
    entry: Dict[str, Any] = {"status": status}
    if message:
        entry["message"] = message
    if details:
        entry["details"] = details
    state.setdefault("execution", {}).setdefault("results", {})[step_id] = entry


def record_decision(state: Dict[str, Any], key: str, value: Any) -> None:
    state.setdefault("execution", {}).setdefault("decisions", {})[key] = value


def add_warning(state: Dict[str, Any], warning: Dict[str, Any]) -> None:
    state.setdefault("execution", {}).setdefault("warnings", []).append(warning)


def save_state(path: str, state: Dict[str, Any]) -> None:
    """Write the run report (json, or yaml by extension)."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
    logger.debug("Run report written: %s", str(p))
