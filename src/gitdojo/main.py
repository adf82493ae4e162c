"""CLI entrypoint for the Git practice companion."""

from __future__ import annotations

import argparse
import concurrent.futures
from collections.abc import Callable
from pathlib import Path
from typing import NoReturn, TypeVar

from rich.console import Console

from . import __version__
from .catalog import Catalogs, build_catalogs
from .config import Settings
from .context import Context
from .errors import ExecutionCancelled, GitDojoError, NotFoundError, QueryError
from .executor import all_checks_passed, all_steps_passed, run_lesson, run_script
from .gitrepo import Repository
from .logging_config import configure_logging, get_logger
from .render import LessonView, ScriptView

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_FAILED = 2

WAIT_INTERVAL = 0.1

USAGE = """gitdojo is a Git practice companion.

Usage:
  gitdojo lessons             List available lessons
  gitdojo verify <lesson-id>  Verify lesson progress in the current repo
  gitdojo run <script-id>     Run terminal practice scripts
  gitdojo version             Show version information

Flags:
  gitdojo verify [--path DIR] <lesson-id>
  gitdojo --verbose <command> Show debug logs on stderr
  gitdojo --scripts-dir DIR <command>
                              Add run scripts from DIR/*.json
"""

T = TypeVar("T")


class UsageError(Exception):
    """Command line could not be parsed."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _console() -> Console:
    return Console(highlight=False)


def _err_console() -> Console:
    return Console(stderr=True, highlight=False)


def _catalogs(scripts_dir: Path | None = None) -> Catalogs:
    return build_catalogs(scripts_dir)


def _open_repository(ctx: Context, path: str | None) -> Repository:
    return Repository.open(ctx, path)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = _Parser(prog="gitdojo", add_help=False)
    parser.add_argument("-h", "--help", action="store_true", dest="show_help")
    parser.add_argument("-v", "--version", action="store_true", dest="show_version")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--scripts-dir", type=Path, default=None)
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("help", add_help=False)
    sub.add_parser("version", add_help=False)
    sub.add_parser("lessons", aliases=["list"], add_help=False)
    verify = sub.add_parser("verify", add_help=False)
    verify.add_argument("--path", "-path", default=None, help="path to repository (defaults to current directory)")
    verify.add_argument("lesson_id", nargs="?")
    run_cmd = sub.add_parser("run", add_help=False)
    run_cmd.add_argument("script_id", nargs="?")
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application and return its exit code."""
    console = _console()
    err = _err_console()
    try:
        args = build_parser().parse_args(argv)
    except UsageError as exc:
        err.print(f"{exc}\n", markup=False)
        console.print(USAGE, markup=False)
        return EXIT_USAGE

    try:
        settings = Settings.from_env()
    except GitDojoError as exc:
        err.print(str(exc), markup=False)
        return EXIT_USAGE
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.show_help or args.command == "help":
        console.print(USAGE, markup=False)
        return EXIT_OK
    if args.show_version or args.command == "version":
        console.print(f"gitdojo version {__version__}", markup=False)
        return EXIT_OK
    if args.command is None:
        console.print(USAGE, markup=False)
        return EXIT_USAGE

    try:
        catalogs = _catalogs(args.scripts_dir)
    except GitDojoError as exc:
        err.print(f"could not load lesson content: {exc}", markup=False)
        return EXIT_USAGE

    if args.command in ("lessons", "list"):
        print_catalog(catalogs, console)
        return EXIT_OK
    if args.command == "verify":
        return _verify(args, catalogs, settings, console, err)
    return _run_script(args, catalogs, settings, console, err)


def print_catalog(catalogs: Catalogs, console: Console) -> None:
    """Print lessons and scripts in id order."""
    console.print("Verification lessons:\n", markup=False)
    for lesson in catalogs.lessons.list():
        _print_entry(console, lesson.id, lesson.title, lesson.description)
    console.print("\nRun lessons:\n", markup=False)
    for script in catalogs.scripts.list():
        _print_entry(console, script.id, script.title, script.description)


def _print_entry(console: Console, entry_id: str, title: str, description: str) -> None:
    console.print(f"  {entry_id:<20} {title}", markup=False)
    if description.strip():
        console.print(f"    {description.strip()}", markup=False)


def _verify(args: argparse.Namespace, catalogs: Catalogs, settings: Settings, console: Console, err: Console) -> int:
    if not args.lesson_id:
        err.print("verify requires a lesson ID. Try 'gitdojo lessons' to list available options.", markup=False)
        return EXIT_USAGE
    try:
        lesson = catalogs.lessons.get(args.lesson_id)
    except NotFoundError as exc:
        err.print(str(exc), markup=False)
        return EXIT_USAGE

    try:
        repo = _open_repository(Context.background().with_timeout(settings.git_timeout), args.path)
    except QueryError as exc:
        err.print(f"failed to open git repository: {exc}", markup=False)
        return EXIT_USAGE
    except KeyboardInterrupt:
        err.print("interrupted while opening the git repository", markup=False)
        return EXIT_USAGE

    view = LessonView(console, lesson)
    interrupted = False
    with view:
        try:
            results = _run_interruptible(
                lambda ctx: run_lesson(ctx, lesson, repo, view.on_result, check_timeout=settings.git_timeout)
            )
        except ExecutionCancelled as exc:
            results, interrupted = exc.results, True
    view.summary(results, len(lesson.checks), interrupted)
    return EXIT_OK if all_checks_passed(results, lesson) else EXIT_FAILED


def _run_script(args: argparse.Namespace, catalogs: Catalogs, settings: Settings, console: Console, err: Console) -> int:
    if not args.script_id:
        err.print("run requires a script ID. Try 'gitdojo lessons' to list available options.", markup=False)
        return EXIT_USAGE
    try:
        script = catalogs.scripts.get(args.script_id)
    except NotFoundError:
        err.print(f"unknown run script: {args.script_id}", markup=False)
        return EXIT_USAGE

    view = ScriptView(console, script)
    interrupted = False
    with view:
        try:
            results = _run_interruptible(
                lambda ctx: run_script(ctx, script, view.on_result, step_timeout=settings.step_timeout)
            )
        except ExecutionCancelled as exc:
            results, interrupted = exc.results, True
    view.summary(results, len(script.steps), interrupted)
    return EXIT_OK if all_steps_passed(results, script) else EXIT_FAILED


def _run_interruptible(job: Callable[[Context], T]) -> T:
    """Run `job` on a worker thread; Ctrl+C cancels its context.

    The main thread keeps waiting after cancellation so the worker can
    stop at the next item boundary and report its partial results.
    """
    ctx = Context.background()
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(job, ctx)
        while True:
            try:
                done, _ = concurrent.futures.wait([future], timeout=WAIT_INTERVAL)
            except KeyboardInterrupt:
                logger.info("interrupt_received")
                ctx.cancel()
                continue
            if done:
                return future.result()


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
