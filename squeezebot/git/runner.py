"""Subprocess runner shared by the git stages."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Iterable, Mapping, Optional, Protocol, Sequence


class GitCommandError(RuntimeError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        command = " ".join(self.args_list[:3])
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"`{command}` failed with exit code {returncode}{detail}")


class CommandRunner(Protocol):
    def __call__(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = False,
        input: Optional[str] = None,
    ) -> str: ...


def default_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    env: Optional[Mapping[str, str]] = None,
    capture_output: bool = False,
    input: Optional[str] = None,
) -> str:
    """Run a command, returning stdout when requested.

    ``env`` holds overrides layered on top of the current process environment.
    """
    command = list(args)
    merged_env = None
    if env:
        merged_env = os.environ.copy()
        merged_env.update(env)
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd),
            env=merged_env,
            check=True,
            text=True,
            input=input,
            stdout=subprocess.PIPE if capture_output else subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
    except subprocess.CalledProcessError as exc:
        raise GitCommandError(command, exc.returncode, exc.stderr or "") from exc
    if capture_output:
        return completed.stdout
    return ""


__all__ = ["CommandRunner", "GitCommandError", "default_runner"]
