"""Shared fixtures: an in-memory SQL store and a controllable clock."""

import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from signups.store.sql import SqlSlotStore

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock the tests can move."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store():
    s = SqlSlotStore.from_url("sqlite://")
    s.create_schema()
    yield s
    s.dispose()


@pytest.fixture
def clock():
    return FakeClock()
