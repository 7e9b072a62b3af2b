from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from dramatiq.brokers.stub import StubBroker

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def stub_broker() -> Iterator[StubBroker]:
    """Provide an in-memory Dramatiq broker for fallback queue tests."""
    broker = StubBroker()
    yield broker
    broker.close()
