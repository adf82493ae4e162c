import json
from pathlib import Path

from gitdojo.catalog import Catalog, build_catalogs
from gitdojo.errors import DuplicateIdError, InvalidInputError, NotFoundError
from gitdojo.models import Lesson, Script, Step


def _lesson(lesson_id: str, title: str = "T") -> Lesson:
    return Lesson(id=lesson_id, title=title, description="", checks=())


def test_list_sorted_by_id_regardless_of_registration_order() -> None:
    catalog: Catalog[Lesson] = Catalog("lesson")
    for lesson_id in ["zeta", "alpha", "mid"]:
        catalog.register(_lesson(lesson_id))
    assert [lesson.id for lesson in catalog.list()] == ["alpha", "mid", "zeta"]
    assert [lesson.id for lesson in catalog] == ["alpha", "mid", "zeta"]


def test_duplicate_registration_fails_and_keeps_first() -> None:
    catalog: Catalog[Lesson] = Catalog("lesson")
    catalog.register(_lesson("init-basics", "first"))
    try:
        catalog.register(_lesson("init-basics", "second"))
        raise AssertionError("Expected DuplicateIdError.")
    except DuplicateIdError as exc:
        assert "init-basics" in str(exc)
    assert len(catalog) == 1
    assert catalog.get("init-basics").title == "first"


def test_script_catalog_uses_same_duplicate_policy() -> None:
    script = Script(id="1", title="A", description="", steps=(Step(command="pwd"),))
    try:
        Catalog.from_entries("script", [script, script])
        raise AssertionError("Expected DuplicateIdError.")
    except DuplicateIdError:
        pass


def test_register_rejects_missing_entry_or_id() -> None:
    catalog: Catalog[Lesson] = Catalog("lesson")
    for bad in (None, _lesson("")):
        try:
            catalog.register(bad)
            raise AssertionError("Expected InvalidInputError.")
        except InvalidInputError:
            pass
    assert len(catalog) == 0


def test_get_unknown_id_raises_not_found() -> None:
    catalog: Catalog[Lesson] = Catalog("lesson")
    try:
        catalog.get("missing")
        raise AssertionError("Expected NotFoundError.")
    except NotFoundError as exc:
        assert str(exc) == "lesson not found: missing"
    assert "missing" not in catalog


def test_build_catalogs_contains_builtin_content() -> None:
    catalogs = build_catalogs()
    assert [lesson.id for lesson in catalogs.lessons.list()] == ["branch-basics", "init-basics"]
    assert "0" in catalogs.scripts
    assert "11b" in catalogs.scripts
    ids = [script.id for script in catalogs.scripts.list()]
    assert ids == sorted(ids)


def test_build_catalogs_returns_fresh_instances() -> None:
    first = build_catalogs()
    second = build_catalogs()
    assert first.lessons is not second.lessons
    first.lessons.register(_lesson("extra"))
    assert "extra" not in second.lessons


def test_build_catalogs_adds_scripts_from_directory(tmp_path: Path) -> None:
    extra = {"scripts": [{"id": "local-1", "title": "Local drill", "steps": [{"command": "git status"}]}]}
    (tmp_path / "local.json").write_text(json.dumps(extra), encoding="utf-8")
    catalogs = build_catalogs(tmp_path)
    assert catalogs.scripts.get("local-1").title == "Local drill"
    assert "0" in catalogs.scripts


def test_build_catalogs_rejects_directory_script_clashing_with_bundled(tmp_path: Path) -> None:
    clash = {"scripts": [{"id": "4a", "title": "Shadow", "steps": [{"command": "true"}]}]}
    (tmp_path / "clash.json").write_text(json.dumps(clash), encoding="utf-8")
    try:
        build_catalogs(tmp_path)
        raise AssertionError("Expected DuplicateIdError.")
    except DuplicateIdError as exc:
        assert str(exc) == "script already registered: 4a"
