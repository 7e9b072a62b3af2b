"""Local history lookups."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

from ..constants import BOT_EMAIL
from .runner import CommandRunner, GitCommandError, default_runner


def read_last_optimization(
    repo_path: Path,
    *,
    email: str = BOT_EMAIL,
    runner: CommandRunner | None = None,
) -> Optional[datetime]:
    """Return the author date of the newest commit made by the bot, if any.

    A checkout whose current branch has no commits yet has no bot history.
    """
    run = runner or default_runner
    repo = Path(repo_path)
    try:
        run(["git", "rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo, capture_output=True)
    except GitCommandError:
        return None

    output = run(
        ["git", "log", "-1", "--fixed-strings", f"--author={email}", "--format=%at"],
        cwd=repo,
        capture_output=True,
    ).strip()
    if not output:
        return None
    try:
        return datetime.fromtimestamp(int(output), tz=UTC)
    except ValueError:
        return None


__all__ = ["read_last_optimization"]
