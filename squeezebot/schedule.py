"""Decides whether a repository is due for another optimization pass."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional

from .config import RepoConfiguration

_THROTTLE_DAYS: Dict[str, int] = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
}


def should_optimize(
    config: RepoConfiguration,
    last_optimized: Optional[datetime],
    now: datetime,
) -> bool:
    """Return True when enough time has passed since the last bot commit.

    Repositories without a schedule, with an unrecognised schedule, or without
    any previous bot commit are always due.
    """
    if not config.schedule:
        return True

    days = _THROTTLE_DAYS.get(config.schedule)
    if days is None:
        return True

    if last_optimized is None:
        return True

    return last_optimized < now - timedelta(days=days)


__all__ = ["should_optimize"]
