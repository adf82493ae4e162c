"""Id-keyed catalogs for lessons and scripts."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Generic, NamedTuple, Protocol, TypeVar

from .content_loader import load_scripts, load_scripts_from_dir
from .errors import DuplicateIdError, InvalidInputError, NotFoundError
from .lessons import default_lessons
from .logging_config import get_logger
from .models import Lesson, Script

logger = get_logger(__name__)


class _HasId(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=_HasId)


class Catalog(Generic[T]):
    """Registration, lookup and sorted listing of entries by id.

    Registering an id twice raises DuplicateIdError and keeps the first
    entry. Populate at startup, then treat as read-only.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: dict[str, T] = {}

    @classmethod
    def from_entries(cls, kind: str, entries: Iterable[T]) -> Catalog[T]:
        catalog: Catalog[T] = cls(kind)
        for entry in entries:
            catalog.register(entry)
        return catalog

    def register(self, entry: T | None) -> None:
        """Add one entry."""
        if entry is None:
            raise InvalidInputError(f"{self.kind} is required")
        if not entry.id:
            raise InvalidInputError(f"{self.kind} id is required")
        if entry.id in self._entries:
            raise DuplicateIdError(self.kind, entry.id)
        self._entries[entry.id] = entry

    def get(self, entry_id: str) -> T:
        """Return the entry for `entry_id` or raise NotFoundError."""
        try:
            return self._entries[entry_id]
        except KeyError:
            raise NotFoundError(self.kind, entry_id) from None

    def list(self) -> list[T]:
        """Return entries sorted by id ascending."""
        return [self._entries[key] for key in sorted(self._entries)]

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self.list())


class Catalogs(NamedTuple):
    """The two catalogs the CLI works with."""

    lessons: Catalog[Lesson]
    scripts: Catalog[Script]


def build_catalogs(scripts_dir: Path | None = None) -> Catalogs:
    """Build fresh catalogs from the built-in lessons and bundled scripts.

    Scripts found in `scripts_dir` are added to the bundled ones; an id that
    clashes with a bundled script raises DuplicateIdError.
    """
    lessons = Catalog.from_entries("lesson", default_lessons())
    scripts = Catalog.from_entries("script", load_scripts())
    if scripts_dir is not None:
        for script in load_scripts_from_dir(scripts_dir):
            scripts.register(script)
    logger.debug("catalog_built", lessons=len(lessons), scripts=len(scripts))
    return Catalogs(lessons=lessons, scripts=scripts)
