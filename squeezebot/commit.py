"""Immutable commit values used by the signed-commit rewrite.

A ``CommitDraft`` mirrors a raw git commit object without a signature. A
``SignedCommit`` wraps a draft together with a detached signature and renders
it with a ``gpgsig`` header. Signing never touches the draft, so stripping the
signature from a signed buffer yields the draft buffer byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

_SIGNATURE_HEADERS = ("gpgsig", "gpgsig-sha256")

Header = Tuple[str, str]


@dataclass(frozen=True)
class CommitDraft:
    """Logical content of a commit: tree, parents, identities, and message."""

    tree: str
    parents: Tuple[str, ...]
    author: str
    committer: str
    message: str
    extra_headers: Tuple[Header, ...] = field(default_factory=tuple)

    @classmethod
    def from_buffer(cls, buffer: str) -> "CommitDraft":
        """Parse a raw commit object as printed by ``git cat-file commit``."""
        headers, message = _split_buffer(buffer)
        if any(key in _SIGNATURE_HEADERS for key, _ in headers):
            raise ValueError("commit buffer is signed; use SignedCommit.from_buffer")
        return cls._from_headers(headers, message)

    @classmethod
    def _from_headers(cls, headers: List[Header], message: str) -> "CommitDraft":
        tree: Optional[str] = None
        parents: List[str] = []
        author: Optional[str] = None
        committer: Optional[str] = None
        extra: List[Header] = []
        for key, value in headers:
            if key == "tree" and tree is None:
                tree = value
            elif key == "parent":
                parents.append(value)
            elif key == "author" and author is None:
                author = value
            elif key == "committer" and committer is None:
                committer = value
            else:
                extra.append((key, value))
        if tree is None or author is None or committer is None:
            raise ValueError("commit buffer is missing tree, author, or committer")
        return cls(
            tree=tree,
            parents=tuple(parents),
            author=author,
            committer=committer,
            message=message,
            extra_headers=tuple(extra),
        )

    def headers(self) -> List[Header]:
        ordered: List[Header] = [("tree", self.tree)]
        ordered.extend(("parent", parent) for parent in self.parents)
        ordered.append(("author", self.author))
        ordered.append(("committer", self.committer))
        ordered.extend(self.extra_headers)
        return ordered

    def to_buffer(self) -> str:
        """Render the canonical commit object text."""
        return _join_buffer(self.headers(), self.message)

    def to_bytes(self) -> bytes:
        return self.to_buffer().encode("utf-8")

    def signing_payload(self) -> str:
        """Return the buffer to sign, terminated by exactly one line terminator."""
        buffer = self.to_buffer()
        return buffer if buffer.endswith("\n") else buffer + "\n"

    def sign(self, signature: str) -> "SignedCommit":
        return SignedCommit(draft=self, signature=signature)


@dataclass(frozen=True)
class SignedCommit:
    """A draft plus an ASCII-armored detached signature."""

    draft: CommitDraft
    signature: str

    @classmethod
    def from_buffer(cls, buffer: str) -> "SignedCommit":
        headers, message = _split_buffer(buffer)
        signature: Optional[str] = None
        unsigned: List[Header] = []
        for key, value in headers:
            if key in _SIGNATURE_HEADERS and signature is None:
                signature = value
            else:
                unsigned.append((key, value))
        if signature is None:
            raise ValueError("commit buffer carries no signature")
        return cls(draft=CommitDraft._from_headers(unsigned, message), signature=signature)

    def unsigned(self) -> CommitDraft:
        return self.draft

    def to_buffer(self) -> str:
        headers = self.draft.headers()
        headers.append(("gpgsig", self.signature.rstrip("\n")))
        return _join_buffer(headers, self.draft.message)

    def to_bytes(self) -> bytes:
        return self.to_buffer().encode("utf-8")


def _split_buffer(buffer: str) -> Tuple[List[Header], str]:
    header_block, separator, message = buffer.partition("\n\n")
    if not separator:
        raise ValueError("commit buffer has no header terminator")

    headers: List[Header] = []
    for line in header_block.split("\n"):
        if line.startswith(" "):
            if not headers:
                raise ValueError("continuation line before any header")
            key, value = headers[-1]
            headers[-1] = (key, f"{value}\n{line[1:]}")
            continue
        key, _, value = line.partition(" ")
        headers.append((key, value))
    return headers, message


def _join_buffer(headers: List[Header], message: str) -> str:
    lines = [key + " " + value.replace("\n", "\n ") for key, value in headers]
    return "\n".join(lines) + "\n\n" + message


__all__ = ["CommitDraft", "SignedCommit"]
