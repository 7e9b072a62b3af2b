"""Detached commit signatures produced with GnuPG."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Protocol

from .git.runner import CommandRunner, GitCommandError, default_runner
from .logging import get_logger


class SigningError(RuntimeError):
    """Raised when a commit payload cannot be signed."""


class CommitSigner(Protocol):
    def sign(self, payload: str) -> str: ...


class GpgSigner:
    """Signs payloads with an armored private key inside a throwaway keyring.

    The key never touches the user's keyring: every call imports it into a
    temporary ``GNUPGHOME`` that is removed afterwards.
    """

    def __init__(
        self,
        private_key: str,
        passphrase: str,
        *,
        executable: str = "gpg",
        runner: CommandRunner | None = None,
    ) -> None:
        self._private_key = private_key
        self._passphrase = passphrase
        self.executable = executable
        self._runner = runner or default_runner
        self.logger = get_logger("signing")

    def sign(self, payload: str) -> str:
        """Return an ASCII-armored detached signature over ``payload``."""
        with tempfile.TemporaryDirectory(prefix="squeezebot-gnupg-") as home:
            home_path = Path(home)
            home_path.chmod(0o700)
            env = {"GNUPGHOME": str(home_path)}
            payload_path = home_path / "payload"
            payload_path.write_text(payload, encoding="utf-8", newline="")
            key_path = home_path / "signing-key.asc"
            key_path.write_text(self._private_key, encoding="utf-8")
            base = [self.executable, "--batch", "--yes", "--no-tty", "--pinentry-mode", "loopback"]
            try:
                self._runner(
                    [*base, "--passphrase-fd", "0", "--import", str(key_path)],
                    cwd=home_path,
                    env=env,
                    input=f"{self._passphrase}\n",
                )
                signature = self._runner(
                    [
                        *base,
                        "--passphrase-fd",
                        "0",
                        "--armor",
                        "--detach-sign",
                        "--output",
                        "-",
                        str(payload_path),
                    ],
                    cwd=home_path,
                    env=env,
                    capture_output=True,
                    input=f"{self._passphrase}\n",
                )
            except (GitCommandError, OSError) as exc:
                raise SigningError(f"Unable to sign commit: {exc}") from exc

        if "BEGIN PGP SIGNATURE" not in signature:
            raise SigningError("gpg produced no armored signature")
        self.logger.debug("Produced detached signature for %d byte payload", len(payload))
        return signature


__all__ = ["CommitSigner", "GpgSigner", "SigningError"]
