"""Remote reference inspection ahead of optimization."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import List

from ..constants import BRANCH_NAME
from ..logging import get_logger
from ..models import Credentials
from .runner import CommandRunner, GitCommandError, default_runner


class RepositoryState(enum.Enum):
    EMPTY = "empty"
    BRANCH_EXISTS = "branch_exists"
    ELIGIBLE = "eligible"


class RepositoryStateInspector:
    """Detects empty repositories and branches left over from earlier runs."""

    def __init__(
        self,
        branch_name: str = BRANCH_NAME,
        runner: CommandRunner | None = None,
    ) -> None:
        self.branch_name = branch_name
        self._runner = runner or default_runner
        self.logger = get_logger("git.inspector")

    def inspect(self, repo_path: Path, credentials: Credentials | None = None) -> RepositoryState:
        """Classify the remote ``origin`` of ``repo_path``.

        A failed listing is logged and reported as ``ELIGIBLE`` so that a
        flaky remote does not block the run. This can hide authorization or
        connectivity problems until the push fails.
        """
        try:
            refs = self._list_references(repo_path, credentials)
        except (GitCommandError, OSError) as exc:
            self.logger.warning(
                "Unable to list remote references for %s; continuing as eligible: %s",
                repo_path,
                exc,
            )
            return RepositoryState.ELIGIBLE

        if not refs:
            return RepositoryState.EMPTY
        if f"refs/heads/{self.branch_name}" in refs:
            return RepositoryState.BRANCH_EXISTS
        return RepositoryState.ELIGIBLE

    def _list_references(self, repo_path: Path, credentials: Credentials | None) -> List[str]:
        output = self._runner(
            ["git", "ls-remote", "origin"],
            cwd=Path(repo_path),
            env=credentials.as_env() if credentials else None,
            capture_output=True,
        )
        refs: List[str] = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) == 2:
                refs.append(parts[1])
        return refs


__all__ = ["RepositoryState", "RepositoryStateInspector"]
