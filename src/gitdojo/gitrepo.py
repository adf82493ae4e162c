"""Read-only queries against a local Git repository."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .context import Context
from .errors import CancelledError, InvalidInputError, NoCommitsError, QueryError
from .logging_config import get_logger
from .shell import communicate

logger = get_logger(__name__)

# stderr fragments git prints when HEAD is unborn. An unknown revision other
# than HEAD (e.g. a missing base branch) stays a plain QueryError.
NO_COMMITS_MARKERS = (
    "does not have any commits yet",
    "ambiguous argument 'HEAD'",
)


def _classify(args: Sequence[str], stderr: str) -> QueryError:
    """Map a failed git invocation to NoCommitsError or a plain QueryError."""
    trimmed = stderr.strip()
    message = f"git {' '.join(args)} failed: {trimmed or 'no error output'}"
    if any(marker in trimmed for marker in NO_COMMITS_MARKERS):
        return NoCommitsError(message, command=args, stderr=trimmed)
    return QueryError(message, command=args, stderr=trimmed)


def git(ctx: Context, cwd: str | Path | None, *args: str) -> str:
    """Run one git command and return stdout, raising QueryError on failure."""
    argv = ["git", *args]
    try:
        stdout, stderr, code = communicate(ctx, argv, cwd=str(cwd) if cwd is not None else None)
    except OSError as exc:
        raise QueryError(f"could not run git: {exc}", command=args) from exc
    except CancelledError as exc:
        raise QueryError(f"git {' '.join(args)} interrupted: {exc}", command=args) from exc
    if code != 0:
        err = _classify(args, stderr)
        if not isinstance(err, NoCommitsError):
            logger.debug("git_command_failed", args=list(args), code=code, stderr=err.stderr)
        raise err
    return stdout


def _parse_count(out: str, what: str) -> int:
    try:
        return int(out.strip())
    except ValueError:
        raise QueryError(f"could not parse {what} from git output: {out.strip()!r}") from None


class Repository:
    """Query helpers rooted at a repository's top-level directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"Repository({str(self.root)!r})"

    @classmethod
    def open(cls, ctx: Context, path: str | Path | None = None) -> Repository:
        """Discover the repository containing `path` (default: cwd)."""
        start = Path(path) if path else Path.cwd()
        if not start.is_dir():
            raise QueryError(f"not a directory: {start}")
        out = git(ctx, start, "rev-parse", "--show-toplevel")
        root = out.strip()
        if not root:
            raise QueryError("repository root is empty")
        return cls(root)

    def _git(self, ctx: Context, *args: str) -> str:
        return git(ctx, self.root, *args)

    def current_branch(self, ctx: Context) -> str:
        """Return the checked-out branch name."""
        try:
            return self._git(ctx, "rev-parse", "--abbrev-ref", "HEAD").strip()
        except NoCommitsError:
            # Unborn branch: HEAD still names it symbolically.
            return self._git(ctx, "symbolic-ref", "--short", "HEAD").strip()

    def has_branch(self, ctx: Context, name: str) -> bool:
        """Report whether a local branch called `name` exists."""
        out = self._git(ctx, "branch", "--list", name)
        wanted = name.lower()
        for line in out.splitlines():
            if line.strip().lstrip("*").strip().lower() == wanted:
                return True
        return False

    def file_exists(self, rel_path: str) -> bool:
        """Report whether `rel_path` exists under the repository root."""
        try:
            return (self.root / rel_path).exists()
        except OSError as exc:
            raise QueryError(f"could not stat {rel_path}: {exc}") from exc

    def commit_count(self, ctx: Context) -> int:
        """Return the number of commits reachable from HEAD (0 when unborn)."""
        try:
            out = self._git(ctx, "rev-list", "--count", "HEAD")
        except NoCommitsError:
            return 0
        return _parse_count(out, "commit count")

    def has_remote(self, ctx: Context, name: str) -> bool:
        out = self._git(ctx, "remote")
        return any(line.strip() == name for line in out.splitlines())

    def last_commit_subject(self, ctx: Context) -> str:
        """Return the subject of the latest commit ("" when unborn)."""
        try:
            return self._git(ctx, "log", "-1", "--pretty=%s").strip()
        except NoCommitsError:
            return ""

    def commits_ahead(self, ctx: Context, base: str, compare: str) -> int:
        """Count commits reachable from `compare` but not from `base`."""
        if not base or not compare:
            raise InvalidInputError("base and compare branches are required")
        out = self._git(ctx, "rev-list", "--count", f"{base}..{compare}")
        return _parse_count(out, "commits ahead count")
