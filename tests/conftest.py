import os
import sys
from datetime import datetime, timedelta

import pytest

# Ensure Python path includes project root for `import daybook`
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from daybook.event_store import EventStore
from daybook.modal import ModalCoordinator


NOW = datetime(2024, 12, 20, 12, 0)


class FakeClock:
    """Settable clock returning naive local datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def store(clock) -> EventStore:
    return EventStore(clock=clock)


@pytest.fixture
def coordinator(store) -> ModalCoordinator:
    return ModalCoordinator(store)


@pytest.fixture
def make_event(store):
    """Create an event in the store with sensible defaults."""
    def _make(title="Event", start=None, end=None, **extra):
        start = start or NOW + timedelta(hours=1)
        end = end or start + timedelta(hours=1)
        data = {"title": title, "start_time": start, "end_time": end}
        data.update(extra)
        return store.create(data)
    return _make
