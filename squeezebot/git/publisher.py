"""Git publishing utilities."""

from __future__ import annotations

from pathlib import Path

from ..constants import BRANCH_NAME
from ..logging import get_logger
from ..models import Credentials
from .runner import CommandRunner, GitCommandError, default_runner


class PushError(RuntimeError):
    """Raised when the finished branch cannot be pushed."""


class Publisher:
    """Pushes the optimization branch; the only step that changes the remote."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or default_runner
        self.logger = get_logger("git.publisher")

    def push(
        self,
        repo_path: Path,
        branch_name: str = BRANCH_NAME,
        credentials: Credentials | None = None,
    ) -> None:
        """Push ``branch_name`` to ``origin``, raising ``PushError`` on failure."""
        repo = Path(repo_path)
        ref = f"refs/heads/{branch_name}"
        try:
            self._runner(
                ["git", "push", "--quiet", "origin", f"{ref}:{ref}"],
                cwd=repo,
                env=credentials.as_env() if credentials else None,
            )
        except (GitCommandError, OSError) as exc:
            raise PushError(f"Unable to push {branch_name}: {exc}") from exc
        self.logger.info("Pushed %s", branch_name)


__all__ = ["PushError", "Publisher"]
