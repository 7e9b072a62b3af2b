"""Tests for the commit composer."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from squeezebot.commit import CommitDraft, SignedCommit
from squeezebot.compression import CompressionEngine
from squeezebot.git.composer import CommitComposer, CorruptionError
from squeezebot.models import CompressionResult
from squeezebot.signing import GpgSigner

PARENT = "1111111111111111111111111111111111111111"
SIGNED_SHA = "9999999999999999999999999999999999999999"
FAKE_SIGNATURE = "-----BEGIN PGP SIGNATURE-----\n\nZmFrZQ==\n-----END PGP SIGNATURE-----\n"


class RecordingSigner:
    def __init__(self) -> None:
        self.payloads: list[str] = []

    def sign(self, payload: str) -> str:
        self.payloads.append(payload)
        return FAKE_SIGNATURE


class ScriptedGit:
    """Records git invocations and replays a commit buffer for ``cat-file``."""

    def __init__(self, message_holder: dict) -> None:
        self.calls: list[dict[str, object]] = []
        self._message_holder = message_holder

    def __call__(self, args, *, cwd, env=None, capture_output=False, input=None):  # type: ignore[no-untyped-def]
        args = list(args)
        self.calls.append({"args": args, "cwd": Path(cwd), "env": env, "input": input})
        if args[:2] == ["git", "commit"]:
            self._message_holder["message"] = args[-1]
        if args[:3] == ["git", "cat-file", "commit"]:
            return (
                "tree 4b825dc642cb6eb9a060e54bf8d69288fbee4904\n"
                f"parent {PARENT}\n"
                "author squeezebot <squeezebot@users.noreply.github.com> 1717243200 +0000\n"
                "committer squeezebot <squeezebot@users.noreply.github.com> 1717243200 +0000\n"
                "\n"
                f"{self._message_holder['message']}"
            )
        if args[:2] == ["git", "hash-object"]:
            return f"{SIGNED_SHA}\n"
        return ""

    def commands(self) -> list[list[str]]:
        return [call["args"][:3] for call in self.calls]  # type: ignore[index]


def _result(repo_builder, relative: str) -> CompressionResult:
    path = repo_builder.write_png(relative)
    size = path.stat().st_size
    return CompressionResult(path=relative, original_path=path, size_before=size * 2, size_after=size)


def test_prepare_branch_checks_out_bot_branch(tmp_path: Path) -> None:
    git = ScriptedGit({})

    CommitComposer(runner=git).prepare_branch(tmp_path)

    assert git.calls[0]["args"] == ["git", "checkout", "-B", "squeezebot"]
    assert git.calls[1]["args"][:3] == ["git", "reset", "--mixed"]


def test_compose_commits_signs_and_rewrites_branch(repo_builder) -> None:
    results = [_result(repo_builder, "img/z.png"), _result(repo_builder, "a.png")]
    git = ScriptedGit({})
    signer = RecordingSigner()

    signed = CommitComposer(runner=git).compose(repo_builder.path(), results, signer)

    assert git.commands() == [
        ["git", "add", "--"],
        ["git", "add", "--"],
        ["git", "commit", "--quiet"],
        ["git", "cat-file", "commit"],
        ["git", "reset", "--soft"],
        ["git", "hash-object", "-t"],
        ["git", "update-ref", "refs/heads/squeezebot"],
        ["git", "checkout", "--quiet"],
        ["git", "reset", "--hard"],
    ]
    assert git.calls[0]["args"][-1] == "a.png"
    assert git.calls[1]["args"][-1] == "img/z.png"

    commit_env = git.calls[2]["env"]
    assert commit_env["GIT_AUTHOR_EMAIL"] == "squeezebot@users.noreply.github.com"
    assert commit_env["GIT_COMMITTER_NAME"] == "squeezebot"
    assert git.calls[4]["args"][-1] == PARENT
    assert git.calls[6]["args"][-1] == SIGNED_SHA
    assert git.calls[8]["args"][-1] == SIGNED_SHA

    draft = signed.unsigned()
    assert signer.payloads == [draft.signing_payload()]
    written = git.calls[5]["input"]
    assert isinstance(written, str)
    assert SignedCommit.from_buffer(written).unsigned().to_bytes() == draft.to_bytes()
    assert draft.parents == (PARENT,)
    assert "/a.png --" in draft.message
    assert draft.message.index("/a.png") < draft.message.index("/img/z.png")


def test_compose_aborts_on_corrupt_image(repo_builder) -> None:
    good = _result(repo_builder, "good.png")
    corrupt_path = repo_builder.write_bytes("bad.png", b"\x89PNG\r\n\x1a\n truncated")
    corrupt = CompressionResult(path="bad.png", original_path=corrupt_path, size_before=100, size_after=20)
    git = ScriptedGit({})

    with pytest.raises(CorruptionError):
        CommitComposer(runner=git).compose(repo_builder.path(), [good, corrupt], RecordingSigner())


def test_compose_requires_results(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        CommitComposer(runner=ScriptedGit({})).compose(tmp_path, [], RecordingSigner())


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test User",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout


@pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
def test_compose_against_real_repository(repo_builder) -> None:
    repo = repo_builder.path()
    _git(repo, "init", "--quiet")
    repo_builder.write_png("assets/logo.png")
    repo_builder.write({"README.md": "# demo\n"})
    _git(repo, "add", ".")
    _git(repo, "commit", "--quiet", "-m", "initial")
    original_tip = _git(repo, "rev-parse", "HEAD").strip()

    results = CompressionEngine().compress(repo, [repo / "assets" / "logo.png"])
    assert [result.path for result in results] == ["assets/logo.png"]

    composer = CommitComposer()
    composer.prepare_branch(repo)
    signed = composer.compose(repo, results, RecordingSigner())

    assert _git(repo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "squeezebot"
    assert _git(repo, "status", "--porcelain").strip() == ""
    assert _git(repo, "rev-parse", "HEAD~1").strip() == original_tip

    stored = _git(repo, "cat-file", "commit", "HEAD")
    assert "gpgsig -----BEGIN PGP SIGNATURE-----" in stored
    reparsed = SignedCommit.from_buffer(stored)
    assert reparsed.unsigned().to_bytes() == signed.unsigned().to_bytes()
    assert isinstance(reparsed.unsigned(), CommitDraft)
    assert "squeezebot <squeezebot@users.noreply.github.com>" in reparsed.unsigned().author

    committed_blob = subprocess.run(
        ["git", "show", "HEAD:assets/logo.png"], cwd=repo, check=True, capture_output=True
    ).stdout
    assert committed_blob == (repo / "assets" / "logo.png").read_bytes()
    assert len(committed_blob) == results[0].size_after


KEY_PASSPHRASE = "correct horse"
KEY_UID = "Image Bot <bot@example.com>"


def _gpg(home: str, *args: str, input: str | None = None) -> str:
    completed = subprocess.run(
        ["gpg", "--homedir", home, "--batch", "--no-tty", "--pinentry-mode", "loopback", *args],
        check=True,
        capture_output=True,
        text=True,
        input=input,
    )
    return completed.stdout


@pytest.fixture
def gpg_home() -> Iterator[str]:
    """A short-lived keyring holding one passphrase-protected signing key."""
    # Short path: gpg-agent sockets live under the home directory.
    with tempfile.TemporaryDirectory(prefix="sqz-gpg-") as home:
        Path(home).chmod(0o700)
        _gpg(home, "--passphrase", KEY_PASSPHRASE, "--quick-gen-key", KEY_UID, "ed25519", "sign", "never")
        try:
            yield home
        finally:
            subprocess.run(["gpgconf", "--homedir", home, "--kill", "gpg-agent"], check=False, capture_output=True)


@pytest.mark.skipif(
    shutil.which("git") is None or shutil.which("gpg") is None,
    reason="git and gpg executables required",
)
def test_signed_commit_passes_git_verify_commit(repo_builder, gpg_home: str) -> None:
    repo = repo_builder.path()
    _git(repo, "init", "--quiet")
    repo_builder.write_png("assets/logo.png")
    _git(repo, "add", ".")
    _git(repo, "commit", "--quiet", "-m", "initial")

    private_key = _gpg(
        gpg_home, "--passphrase", KEY_PASSPHRASE, "--armor", "--export-secret-keys", KEY_UID
    )
    results = CompressionEngine().compress(repo, [repo / "assets" / "logo.png"])
    composer = CommitComposer()
    composer.prepare_branch(repo)
    composer.compose(repo, results, GpgSigner(private_key, KEY_PASSPHRASE))

    verified = subprocess.run(
        ["git", "verify-commit", "HEAD"],
        cwd=repo,
        capture_output=True,
        text=True,
        env={**os.environ, "GNUPGHOME": gpg_home},
    )
    assert verified.returncode == 0, verified.stderr


def test_verify_images_rejects_format_that_does_not_match_suffix(repo_builder) -> None:
    disguised = _result(repo_builder, "photos/holiday.jpg")

    with pytest.raises(CorruptionError, match="decodes as PNG, expected JPEG"):
        CommitComposer(runner=ScriptedGit({})).verify_images(repo_builder.path(), [disguised])


def test_verify_images_accepts_matching_formats(repo_builder) -> None:
    upper = _result(repo_builder, "icons/LOGO.PNG")

    CommitComposer(runner=ScriptedGit({})).verify_images(repo_builder.path(), [upper])
