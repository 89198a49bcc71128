"""Pytest configuration and shared fixtures."""

import pytest

from tys_calendar.debug import set_debug
from tys_calendar.event_store import EventStore
from tys_calendar.queries import TemporalQueryEngine
from tys_calendar.sources import ListPomodoroSource, ListTaskSource
from tys_calendar.storage import MemorySnapshotStorage


@pytest.fixture(autouse=True)
def quiet_debug():
    """Keep diagnostic output off unless a test turns it on."""
    set_debug(False)
    yield
    set_debug(False)


@pytest.fixture
def storage():
    return MemorySnapshotStorage()


@pytest.fixture
def store(storage):
    store = EventStore(storage)
    store.load()
    return store


@pytest.fixture
def queries(store):
    return TemporalQueryEngine(store)


@pytest.fixture
def task_source():
    return ListTaskSource()


@pytest.fixture
def session_source():
    return ListPomodoroSource()
