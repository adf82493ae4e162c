"""Load declarative run scripts from bundled JSON resources."""

from __future__ import annotations

import json
from collections.abc import Iterable
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import ContentError, DuplicateIdError
from .models import NO_EXIT_CODE_CHECK, Script, Step

CONTENT_PACKAGE = "gitdojo.content.scripts"


def _step_from_dict(script_id: str, index: int, raw: Any) -> Step:
    """Build a step from raw JSON content."""
    if not isinstance(raw, dict):
        raise ContentError(f"Script '{script_id}' step {index} must be an object.")
    command = str(raw.get("command", "")).strip()
    if not command:
        raise ContentError(f"Script '{script_id}' step {index} has no command.")

    exit_code = raw.get("expect_exit_code", 0)
    if exit_code is None:
        exit_code = NO_EXIT_CODE_CHECK
    if isinstance(exit_code, bool) or not isinstance(exit_code, int):
        raise ContentError(f"Script '{script_id}' step {index} has a non-integer expect_exit_code.")

    raw_stdout = raw.get("expect_stdout", [])
    if not isinstance(raw_stdout, list) or not all(isinstance(item, str) for item in raw_stdout):
        raise ContentError(f"Script '{script_id}' step {index} expect_stdout must be a list of strings.")
    expect_stdout = tuple(item for item in raw_stdout if item)

    return Step(command=command, expect_exit_code=exit_code, expect_stdout=expect_stdout)


def _script_from_dict(raw: Any) -> Script:
    """Build a script from raw JSON content."""
    if not isinstance(raw, dict):
        raise ContentError("Each script entry must be an object.")
    script_id = str(raw.get("id", "")).strip()
    if not script_id:
        raise ContentError("Script is missing an id.")
    title = str(raw.get("title", "")).strip()
    if not title:
        raise ContentError(f"Script '{script_id}' is missing a title.")
    raw_steps = raw.get("steps", [])
    if not isinstance(raw_steps, list) or not raw_steps:
        raise ContentError(f"Script '{script_id}' has no steps.")
    steps = tuple(_step_from_dict(script_id, index, item) for index, item in enumerate(raw_steps, start=1))
    return Script(
        id=script_id,
        title=title,
        description=str(raw.get("description", "")).strip(),
        steps=steps,
    )


def _scripts_from_document(source: str, text: str) -> list[Script]:
    """Parse one JSON document holding a `scripts` list."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContentError(f"{source}: invalid JSON: {exc}") from exc
    if not isinstance(raw, dict) or not isinstance(raw.get("scripts"), list):
        raise ContentError(f"{source}: expected an object with a 'scripts' list.")
    return [_script_from_dict(item) for item in raw["scripts"]]


def _collect(documents: Iterable[tuple[str, str]]) -> list[Script]:
    """Merge scripts from several documents, rejecting duplicate ids."""
    seen: dict[str, Script] = {}
    for source, text in documents:
        for script in _scripts_from_document(source, text):
            if script.id in seen:
                raise DuplicateIdError("script", script.id)
            seen[script.id] = script
    return list(seen.values())


def load_scripts() -> list[Script]:
    """Load bundled scripts."""
    entries = sorted(
        (entry for entry in resources.files(CONTENT_PACKAGE).iterdir() if entry.name.endswith(".json")),
        key=lambda entry: entry.name,
    )
    return _collect((entry.name, entry.read_text(encoding="utf-8-sig")) for entry in entries)


def load_scripts_from_dir(path: Path) -> list[Script]:
    """Load scripts from a directory of JSON files."""
    if not path.is_dir():
        raise ContentError(f"scripts directory not found: {path}")
    return _collect(
        (file_path.name, file_path.read_text(encoding="utf-8-sig")) for file_path in sorted(path.glob("*.json"))
    )
