"""
One-way reconciliation of external records into calendar events.

Each pass pulls the full external list and compares it with the events
linked to it. Creation, patching and deletion all go through the
EventStore mutation API, so a pass persists once per change it makes.
Running a pass twice without external changes makes no mutation.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Optional

from .config import Config
from .debug import debug_print
from .event_store import EventStore
from .models import CalendarEvent, EventType, PomodoroSession, Task
from .sources import PomodoroSource, TaskSource
from .time_utils import InvalidTimestampError, parse_timestamp


@dataclass
class SyncResult:
    added: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.deleted)

    def to_dict(self) -> dict:
        return asdict(self)


def _stale_fields(event: CalendarEvent, fresh: dict, compared: Optional[tuple[str, ...]] = None) -> bool:
    names = compared if compared is not None else tuple(fresh)
    return any(getattr(event, name) != fresh[name] for name in names)


class _Reconciler:
    """Shared bookkeeping for a reconciliation pass over one event type."""

    event_type: EventType
    tag: str = "SYNC"
    # Fields whose difference triggers a refresh; None compares every patched field
    compared_fields: Optional[tuple[str, ...]] = None

    def __init__(self, store: EventStore):
        self._store = store

    def _linked_events(self) -> list[CalendarEvent]:
        return [e for e in self._store.list() if e.type == self.event_type]

    def _drop_duplicates(self, events: list[CalendarEvent], result: SyncResult) -> list[CalendarEvent]:
        """
        Keep the first event per linked id and delete the rest.

        Events without a linked id were made by the user and are left alone.
        """
        kept, seen = [], set()
        for event in events:
            if event.linked_id is None:
                continue
            if event.linked_id in seen:
                debug_print(self.tag, f"Removing duplicate {self.event_type.value} event {event.id}")
                self._store.delete_event(event.id)
                result.deleted += 1
                continue
            seen.add(event.linked_id)
            kept.append(event)
        return kept

    def _apply_refresh(self, event: CalendarEvent, fresh: dict, result: SyncResult) -> None:
        if _stale_fields(event, fresh, self.compared_fields):
            self._store.update_event(event.id, **fresh)
            result.updated += 1


class TaskSyncReconciler(_Reconciler):
    """Keeps one all-day 'task' event per task, mirroring title, description, due date and completion."""

    event_type = EventType.TASK
    tag = "TASK-SYNC"
    # end follows start in the patch but is not compared
    compared_fields = ("title", "description", "start", "completed")

    def __init__(self, store: EventStore, tasks: TaskSource):
        super().__init__(store)
        self._tasks = tasks

    @staticmethod
    def _fresh_fields(task: Task, due: datetime) -> dict:
        return {
            "title": task.title,
            "description": task.description,
            "start": due,
            "end": due,
            "completed": task.is_completed,
        }

    def sync(self) -> SyncResult:
        result = SyncResult()
        existing = self._drop_duplicates(self._linked_events(), result)
        represented = {e.linked_id for e in existing}

        tasks = self._tasks.get_tasks()
        by_id: dict[str, Task] = {}
        due_dates: dict[str, datetime] = {}
        for task in tasks:
            by_id[task.id] = task
            try:
                due_dates[task.id] = parse_timestamp(task.due_date)
            except InvalidTimestampError as e:
                debug_print(self.tag, f"Skipping task {task.id}: {e}")
                result.skipped += 1

        for task in tasks:
            if task.id in represented or task.id not in due_dates:
                continue
            due = due_dates[task.id]
            self._store.add_event(
                title=task.title,
                description=task.description,
                start=due,
                end=due,
                all_day=True,
                type=self.event_type,
                color=self._store.user_preferences.color_for(self.event_type),
                linked_id=task.id,
                completed=task.is_completed,
            )
            represented.add(task.id)
            result.added += 1

        for event in existing:
            task = by_id.get(event.linked_id)
            if task is None:
                self._store.delete_event(event.id)
                result.deleted += 1
            elif event.linked_id in due_dates:
                self._apply_refresh(event, self._fresh_fields(task, due_dates[task.id]), result)

        debug_print(self.tag, f"+{result.added} ~{result.updated} -{result.deleted} skipped={result.skipped}")
        return result


class SessionSyncReconciler(_Reconciler):
    """
    Keeps one 'pomodoro' event per pomodoro session.

    By default only missing events are created; existing ones are never
    patched or deleted. With mirror_changes=True the pass also refreshes
    changed sessions and removes events whose session is gone, like the
    task reconciler.
    """

    event_type = EventType.POMODORO
    tag = "POMODORO-SYNC"

    def __init__(
        self,
        store: EventStore,
        sessions: PomodoroSource,
        tasks: Optional[TaskSource] = None,
        mirror_changes: bool = False,
    ):
        super().__init__(store)
        self._sessions = sessions
        self._tasks = tasks
        self.mirror_changes = mirror_changes

    def _session_times(self, session: PomodoroSession) -> tuple[datetime, datetime]:
        start = parse_timestamp(session.start_time)
        if session.end_time:
            end = parse_timestamp(session.end_time)
        else:
            end = start + timedelta(minutes=session.duration)
        return start, end

    @staticmethod
    def _fresh_fields(session: PomodoroSession, task: Optional[Task],
                      start: datetime, end: datetime) -> dict:
        if task is not None:
            title = f"Pomodoro: {task.title}"
            description = f"Pomodoro session for task: {task.title}"
        else:
            title = "Pomodoro Session"
            description = "Pomodoro study session"
        return {
            "title": title,
            "description": description,
            "start": start,
            "end": end,
            "completed": session.completed,
        }

    def sync(self) -> SyncResult:
        result = SyncResult()
        events = self._linked_events()
        if self.mirror_changes:
            events = self._drop_duplicates(events, result)
        represented = {e.linked_id for e in events}

        sessions = self._sessions.get_sessions()
        tasks_by_id = {t.id: t for t in self._tasks.get_tasks()} if self._tasks else {}

        by_id: dict[str, PomodoroSession] = {}
        fresh: dict[str, dict] = {}
        for session in sessions:
            by_id[session.id] = session
            try:
                start, end = self._session_times(session)
            except InvalidTimestampError as e:
                debug_print(self.tag, f"Skipping session {session.id}: {e}")
                result.skipped += 1
                continue
            task = tasks_by_id.get(session.task_id) if session.task_id else None
            fresh[session.id] = self._fresh_fields(session, task, start, end)

        for session in sessions:
            if session.id in represented or session.id not in fresh:
                continue
            self._store.add_event(
                all_day=False,
                type=self.event_type,
                color=self._store.user_preferences.color_for(self.event_type),
                linked_id=session.id,
                **fresh[session.id],
            )
            represented.add(session.id)
            result.added += 1

        if self.mirror_changes:
            for event in events:
                if event.linked_id not in by_id:
                    self._store.delete_event(event.id)
                    result.deleted += 1
                elif event.linked_id in fresh:
                    self._apply_refresh(event, fresh[event.linked_id], result)

        debug_print(self.tag, f"+{result.added} ~{result.updated} -{result.deleted} skipped={result.skipped}")
        return result


class CalendarSync:
    """Runs both reconcilers; what a view calls when it mounts or a source changes."""

    def __init__(
        self,
        store: EventStore,
        tasks: TaskSource,
        sessions: PomodoroSource,
        config: Optional[Config] = None,
    ):
        mirror = config.sync.mirror_session_changes if config else False
        self.task_sync = TaskSyncReconciler(store, tasks)
        self.session_sync = SessionSyncReconciler(store, sessions, tasks, mirror_changes=mirror)

    def sync_tasks(self) -> SyncResult:
        return self.task_sync.sync()

    def sync_pomodoro(self) -> SyncResult:
        return self.session_sync.sync()

    def sync_all(self) -> dict[str, SyncResult]:
        return {"tasks": self.sync_tasks(), "pomodoro": self.sync_pomodoro()}
