"""Built-in verification lessons."""

from __future__ import annotations

from .context import Context
from .errors import QueryError
from .gitrepo import Repository
from .models import Check, Lesson, Outcome

LESSON_BRANCH = "feature/lesson-branch"
BASE_BRANCH = "main"
MIN_MESSAGE_LENGTH = 5
BRANCH_TAG = "[branch]"


def _first_commit(ctx: Context, repo: Repository) -> Outcome:
    try:
        count = repo.commit_count(ctx)
    except QueryError as exc:
        return Outcome.from_error(exc)
    if count == 0:
        return Outcome.failure("No commits detected. Run git commit to create your first snapshot.")
    return Outcome.success(f"Great! You have {count} commit(s) so far.")


def _readme_exists(ctx: Context, repo: Repository) -> Outcome:
    try:
        exists = repo.file_exists("README.md")
    except QueryError as exc:
        return Outcome.from_error(exc)
    if not exists:
        return Outcome.failure("Couldn't find README.md at the repo root.")
    return Outcome.success("README.md found. Nice documentation!")


def _descriptive_message(ctx: Context, repo: Repository) -> Outcome:
    try:
        subject = repo.last_commit_subject(ctx)
    except QueryError as exc:
        return Outcome.from_error(exc)
    trimmed = subject.strip()
    if len(trimmed) < MIN_MESSAGE_LENGTH:
        return Outcome.failure("Try writing a longer commit message that explains the change.")
    return Outcome.success(f'Last commit message looks good: "{trimmed}"')


def _branch_exists(ctx: Context, repo: Repository) -> Outcome:
    try:
        exists = repo.has_branch(ctx, LESSON_BRANCH)
    except QueryError as exc:
        return Outcome.from_error(exc)
    if not exists:
        return Outcome.failure(f"Branch {LESSON_BRANCH} not found.")
    return Outcome.success(f"{LESSON_BRANCH} exists.")


def _branch_current(ctx: Context, repo: Repository) -> Outcome:
    try:
        branch = repo.current_branch(ctx)
    except QueryError as exc:
        return Outcome.from_error(exc)
    if branch != LESSON_BRANCH:
        return Outcome.failure(f"Currently on {branch}. Switch to {LESSON_BRANCH}.")
    return Outcome.success("Nice, you're working on the feature branch.")


def _branch_commit(ctx: Context, repo: Repository) -> Outcome:
    try:
        ahead = repo.commits_ahead(ctx, BASE_BRANCH, LESSON_BRANCH)
    except QueryError as exc:
        return Outcome.from_error(exc)
    if ahead == 0:
        return Outcome.failure(f"No commits found on {LESSON_BRANCH} that aren't on {BASE_BRANCH}.")
    return Outcome.success(f"{LESSON_BRANCH} is ahead of {BASE_BRANCH} by {ahead} commit(s).")


def _message_tag(ctx: Context, repo: Repository) -> Outcome:
    try:
        subject = repo.last_commit_subject(ctx)
    except QueryError as exc:
        return Outcome.from_error(exc)
    if BRANCH_TAG not in subject:
        return Outcome.failure(f"Add {BRANCH_TAG} to your latest commit message for visibility.")
    return Outcome.success(f"{BRANCH_TAG} tag detected in your latest commit message.")


def init_basics() -> Lesson:
    """First commit, README and a meaningful message."""
    return Lesson(
        id="init-basics",
        title="Initialize a Git repository",
        description="Make your first commit, add a README, and practice writing meaningful messages.",
        checks=(
            Check(
                id="first-commit",
                title="Create at least one commit",
                description="Use git add and git commit so HEAD has history.",
                verify=_first_commit,
            ),
            Check(
                id="readme-exists",
                title="Add a README.md",
                description="Document what this practice repository is about.",
                verify=_readme_exists,
            ),
            Check(
                id="commit-message",
                title="Write a descriptive commit message",
                description=f"Make sure your latest commit message is at least {MIN_MESSAGE_LENGTH} characters long.",
                verify=_descriptive_message,
            ),
        ),
    )


def branch_basics() -> Lesson:
    """Feature branch with its own commits."""
    return Lesson(
        id="branch-basics",
        title="Practice branching",
        description=f"Create a feature branch, commit work on it, and keep {BASE_BRANCH} clean.",
        checks=(
            Check(
                id="branch-exists",
                title=f"Create {LESSON_BRANCH}",
                description="Use git branch or git switch -c to create the feature branch.",
                verify=_branch_exists,
            ),
            Check(
                id="branch-current",
                title="Check out the feature branch",
                description=f"Switch to {LESSON_BRANCH} before committing work.",
                verify=_branch_current,
            ),
            Check(
                id="branch-commit",
                title="Commit work on the feature branch",
                description=f"Create at least one commit that is ahead of {BASE_BRANCH}.",
                verify=_branch_commit,
            ),
            Check(
                id="commit-message-tag",
                title="Tag your commit message",
                description=f"Mention {BRANCH_TAG} in the latest commit subject to flag branch work.",
                verify=_message_tag,
            ),
        ),
    )


def default_lessons() -> list[Lesson]:
    """Return the built-in lessons in declaration order."""
    return [init_basics(), branch_basics()]
