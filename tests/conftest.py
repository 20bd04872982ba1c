"""
Shared pytest fixtures for TeraSky Insights tests.

Orchestration tests use tests.fakes.FakeExecutor, so no container
engine is needed.
"""

from typing import List

import pytest


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    delays: List[float] = []

    def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
