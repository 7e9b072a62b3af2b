"""Builds the signed optimization commit in a local working copy."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence

from PIL import Image

from ..commit import CommitDraft, SignedCommit
from ..commit_message import build_commit_message
from ..constants import BOT_EMAIL, BOT_NAME, BRANCH_NAME
from ..image_query import DECLARED_FORMATS
from ..logging import get_logger
from ..models import CompressionResult
from ..signing import CommitSigner
from .runner import CommandRunner, default_runner


class CorruptionError(RuntimeError):
    """Raised when an optimized image no longer decodes after the rewrite."""


class CommitComposer:
    """Stages optimized files, commits, re-signs the commit, and verifies the tree.

    Everything here is local to the working copy; nothing is pushed.
    """

    def __init__(
        self,
        branch_name: str = BRANCH_NAME,
        *,
        bot_name: str = BOT_NAME,
        bot_email: str = BOT_EMAIL,
        runner: CommandRunner | None = None,
    ) -> None:
        self.branch_name = branch_name
        self.bot_name = bot_name
        self.bot_email = bot_email
        self._runner = runner or default_runner
        self.logger = get_logger("git.composer")

    def prepare_branch(self, repo_path: Path) -> None:
        """Point the bot branch at the current tip and check it out, keeping working changes."""
        repo = Path(repo_path)
        self._run(["git", "checkout", "-B", self.branch_name], cwd=repo)
        self._run(["git", "reset", "--mixed", "--quiet", "HEAD"], cwd=repo)

    def compose(
        self,
        repo_path: Path,
        results: Sequence[CompressionResult],
        signer: CommitSigner,
    ) -> SignedCommit:
        repo = Path(repo_path)
        ordered = sorted(results, key=lambda result: result.path)
        if not ordered:
            raise ValueError("compose requires at least one compression result")

        for result in ordered:
            self._run(["git", "add", "--", result.path], cwd=repo)

        message = build_commit_message(ordered)
        self._run(
            ["git", "commit", "--quiet", "--no-verify", "--no-gpg-sign", "-m", message],
            cwd=repo,
            env=self._identity_env(),
        )

        # Capture the commit exactly as stored, then rebuild it with a signature.
        buffer = self._run(["git", "cat-file", "commit", "HEAD"], cwd=repo, capture_output=True)
        draft = CommitDraft.from_buffer(buffer)
        signature = signer.sign(draft.signing_payload())

        if draft.parents:
            self._run(["git", "reset", "--soft", "--quiet", draft.parents[0]], cwd=repo)

        signed = draft.sign(signature)
        sha = self._run(
            ["git", "hash-object", "-t", "commit", "-w", "--stdin"],
            cwd=repo,
            capture_output=True,
            input=signed.to_buffer(),
        ).strip()
        self._run(["git", "update-ref", f"refs/heads/{self.branch_name}", sha], cwd=repo)
        self._run(["git", "checkout", "--quiet", self.branch_name], cwd=repo)
        self._run(["git", "reset", "--hard", "--quiet", sha], cwd=repo)
        self.logger.info("Created signed commit %s on %s", sha, self.branch_name)

        self.verify_images(repo, ordered)
        return signed

    def verify_images(self, repo_path: Path, results: Sequence[CompressionResult]) -> None:
        """Decode every optimized file from the checked-out tree as its declared format."""
        repo = Path(repo_path)
        for result in results:
            target = repo / result.path
            try:
                with Image.open(target) as image:
                    image.load()
                    decoded_format = image.format
            except (OSError, ValueError, SyntaxError) as exc:
                self.logger.error("Corrupt image after reset: %s", result.path)
                raise CorruptionError(f"{result.path} does not decode after signing: {exc}") from exc

            declared = DECLARED_FORMATS.get(target.suffix.lower())
            if declared is not None and decoded_format != declared:
                self.logger.error("Format mismatch after reset: %s", result.path)
                raise CorruptionError(
                    f"{result.path} decodes as {decoded_format}, expected {declared}"
                )

    def _identity_env(self) -> Dict[str, str]:
        return {
            "GIT_AUTHOR_NAME": self.bot_name,
            "GIT_AUTHOR_EMAIL": self.bot_email,
            "GIT_COMMITTER_NAME": self.bot_name,
            "GIT_COMMITTER_EMAIL": self.bot_email,
        }

    def _run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Dict[str, str] | None = None,
        capture_output: bool = False,
        input: str | None = None,
    ) -> str:
        return self._runner(args, cwd=cwd, env=env, capture_output=capture_output, input=input)


__all__ = ["CommitComposer", "CorruptionError"]
