"""Renders the commit message summarising compression savings."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

from jinja2 import Environment, FileSystemLoader

from .constants import COMMIT_TITLE
from .models import CompressionResult, saved_percentage

_TEMPLATES_DIR = Path(__file__).with_name("templates")


def _create_env() -> Environment:
    loader = FileSystemLoader(str(_TEMPLATES_DIR))
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


_ENV = _create_env()


def _kb(size: int) -> str:
    return f"{size / 1024:.2f}"


def _percent(value: float) -> str:
    return f"{value:.2f}"


def build_commit_message(results: Iterable[CompressionResult], *, title: str = COMMIT_TITLE) -> str:
    """Return the commit message for ``results``.

    Lines are ordered by path so the message does not depend on the order in
    which files finished compressing.
    """
    ordered = sorted(results, key=lambda result: result.path)
    before = sum(result.size_before for result in ordered)
    after = sum(result.size_after for result in ordered)

    lines: List[Dict[str, str]] = [
        {
            "path": result.path.lstrip("/"),
            "before": _kb(result.size_before),
            "after": _kb(result.size_after),
            "percent": _percent(result.percent_saved),
        }
        for result in ordered
    ]
    total = {"before": _kb(before), "after": _kb(after), "percent": _percent(saved_percentage(before, after))}

    template = _ENV.get_template("commit_message.j2")
    return template.render(title=title, total=total, lines=lines).strip() + "\n"


__all__ = ["build_commit_message"]
