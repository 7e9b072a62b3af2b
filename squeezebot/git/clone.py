"""Obtains the local working copy for a run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ..fallback import FallbackQueue
from ..logging import get_logger
from ..models import Credentials
from .runner import CommandRunner, GitCommandError, default_runner


class CloneError(RuntimeError):
    """Raised when the repository cannot be cloned and no fallback is available."""


@dataclass(frozen=True)
class CloneResult:
    """Outcome of a clone attempt.

    ``deferred`` means the run was handed to the fallback queue and the caller
    must stop without touching ``path``.
    """

    path: Optional[Path]
    deferred: bool = False


class CloneCoordinator:
    """Clones repositories, bouncing to the fallback queue when cloning fails."""

    def __init__(
        self,
        fallback_queue: FallbackQueue | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.fallback_queue = fallback_queue
        self._runner = runner or default_runner
        self.logger = get_logger("git.clone")

    def clone(
        self,
        url: str,
        local_path: Path,
        credentials: Credentials | None = None,
        *,
        fallback_payload: Optional[Mapping[str, Any]] = None,
    ) -> CloneResult:
        target = Path(local_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        env = credentials.as_env() if credentials else None
        try:
            self._runner(
                ["git", "clone", "--quiet", url, str(target)],
                cwd=target.parent,
                env=env,
            )
        except (GitCommandError, OSError) as exc:
            if self.fallback_queue is not None and fallback_payload is not None:
                self.logger.info("Clone of %s failed (%s); bouncing to fallback queue", url, exc)
                self.fallback_queue.enqueue(fallback_payload)
                return CloneResult(path=None, deferred=True)
            raise CloneError(f"Unable to clone {url}: {exc}") from exc

        self.logger.debug("Cloned %s into %s", url, target)
        return CloneResult(path=target)


__all__ = ["CloneCoordinator", "CloneError", "CloneResult"]
