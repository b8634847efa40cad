"""Shared fixtures: a recording sleep and a manual clock."""

from typing import List

import pytest

from doubles import ManualClock


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
