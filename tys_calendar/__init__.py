"""
TrackYouStudy Calendar Engine

This package provides the calendar core of the study tracker:
- Configuration parsing (config.py)
- Event model and preferences (models.py)
- Snapshot persistence (storage.py)
- Event store with interval index (event_store.py, interval_tree.py)
- Task and pomodoro reconcilers (reconcilers.py, sources.py)
- Day/range queries (queries.py) and date navigation (navigation.py)
- Time-grid layout (layout.py)
- iCalendar export/import (ics_export.py)
"""

from .config import Config
from .models import (
    CalendarEvent, EventType, ViewMode, UserPreferences, WorkingHours,
    Recurrence, Reminder, Task, PomodoroSession,
)
from .storage import JsonSnapshotStorage, MemorySnapshotStorage, PersistenceError
from .event_store import EventStore
from .sources import (
    TaskSource, PomodoroSource, ListTaskSource, ListPomodoroSource,
    JsonTaskSource, JsonPomodoroSource,
)
from .reconcilers import TaskSyncReconciler, SessionSyncReconciler, CalendarSync, SyncResult
from .queries import TemporalQueryEngine, Occurrence
from .layout import event_position, assign_lanes, GridPosition, LaneSlot
from .ics_export import export_to_ics, import_from_ics
from .time_utils import InvalidTimestampError

__all__ = [
    'Config',
    'CalendarEvent',
    'EventType',
    'ViewMode',
    'UserPreferences',
    'WorkingHours',
    'Recurrence',
    'Reminder',
    'Task',
    'PomodoroSession',
    'JsonSnapshotStorage',
    'MemorySnapshotStorage',
    'PersistenceError',
    'EventStore',
    'TaskSource',
    'PomodoroSource',
    'ListTaskSource',
    'ListPomodoroSource',
    'JsonTaskSource',
    'JsonPomodoroSource',
    'TaskSyncReconciler',
    'SessionSyncReconciler',
    'CalendarSync',
    'SyncResult',
    'TemporalQueryEngine',
    'Occurrence',
    'event_position',
    'assign_lanes',
    'GridPosition',
    'LaneSlot',
    'export_to_ics',
    'import_from_ics',
    'InvalidTimestampError',
]
