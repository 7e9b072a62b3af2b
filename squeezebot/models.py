"""Core data models shared across squeezebot components."""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Credentials:
    """Username/token pair handed explicitly to each network git operation."""

    username: str
    password: str = field(repr=False)

    def as_env(self) -> Dict[str, str]:
        """Render the credentials as git environment overrides.

        The secret travels through ``GIT_CONFIG_*`` variables so it never
        shows up in the process argument list.
        """
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        return {
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {token}",
        }


@dataclass(frozen=True)
class RunParameters:
    """Inputs for one pipeline run against a single repository."""

    clone_url: str
    local_path: Path
    credentials: Credentials
    repo_owner: str
    repo_name: str
    signing_key: str = field(repr=False)
    signing_passphrase: str = field(repr=False)
    fallback_payload: Optional[Mapping[str, Any]] = None

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"


def saved_percentage(size_before: int, size_after: int) -> float:
    """Percentage of ``size_before`` removed; zero for empty originals."""
    if size_before <= 0:
        return 0.0
    return (size_before - size_after) / size_before * 100


@dataclass(frozen=True)
class CompressionResult:
    """A file whose optimized form is strictly smaller than the original."""

    path: str
    original_path: Path
    size_before: int
    size_after: int

    @property
    def saved_bytes(self) -> int:
        return self.size_before - self.size_after

    @property
    def percent_saved(self) -> float:
        return saved_percentage(self.size_before, self.size_after)


class PipelineOutcome(enum.Enum):
    """Terminal state of a pipeline run that did not raise."""

    PUSHED = "pushed"
    NO_ACTION = "no_action"
    DEFERRED = "deferred"


__all__ = ["CompressionResult", "Credentials", "PipelineOutcome", "RunParameters", "saved_percentage"]
