"""gitdojo package: Git lesson checks and scripted shell drills."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

DIST_NAME = "gitdojo"


def _version_from_pyproject() -> str | None:
    """Read the project version when running from a source checkout."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError:
            return None
        project = data.get("project", {})
        if project.get("name") != DIST_NAME:
            return None
        found = project.get("version")
        return str(found) if found else None
    return None


_source_version = _version_from_pyproject()
if _source_version is not None:
    __version__ = _source_version
else:
    try:
        __version__ = version(DIST_NAME)
    except PackageNotFoundError:
        __version__ = "0+unknown"
