"""
Read-only ports onto the external task and pomodoro stores.

The reconcilers only see these interfaces. In-memory implementations
serve tests and embedding; the JSON implementations read the exports the
browser application writes.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from .debug import debug_print
from .models import PomodoroSession, Task


class TaskSource(ABC):
    @abstractmethod
    def get_tasks(self) -> list[Task]:
        """Return the current tasks."""
        pass


class PomodoroSource(ABC):
    @abstractmethod
    def get_sessions(self) -> list[PomodoroSession]:
        """Return the current pomodoro sessions."""
        pass


class ListTaskSource(TaskSource):
    """Tasks held in a list; mutate .tasks to simulate the task store."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self.tasks: list[Task] = list(tasks)

    def get_tasks(self) -> list[Task]:
        return list(self.tasks)


class ListPomodoroSource(PomodoroSource):
    """Sessions held in a list; mutate .sessions to simulate the pomodoro store."""

    def __init__(self, sessions: Iterable[PomodoroSession] = ()):
        self.sessions: list[PomodoroSession] = list(sessions)

    def get_sessions(self) -> list[PomodoroSession]:
        return list(self.sessions)


def _read_records(path: Path, key: str) -> list[dict]:
    """
    Read a list of records from a JSON export.

    Accepts a bare list, {key: [...]}, or the browser persistence
    envelope {"state": {key: [...]}}. A missing file means no records.
    """
    if not path.exists():
        debug_print("SOURCE", f"{path} does not exist, no {key}")
        return []

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict) and isinstance(data.get("state"), dict):
        data = data["state"]
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of {key}")
    return data


class JsonTaskSource(TaskSource):
    """Tasks read from a JSON file on every call."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_tasks(self) -> list[Task]:
        return [Task.from_dict(r) for r in _read_records(self.path, "tasks")]


class JsonPomodoroSource(PomodoroSource):
    """Sessions read from a JSON file on every call."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_sessions(self) -> list[PomodoroSession]:
        return [PomodoroSession.from_dict(r) for r in _read_records(self.path, "sessions")]
