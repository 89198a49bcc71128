"""
Event Store for the calendar engine.

Sole owner of the CalendarEvent collection. Every mutation is written
through to the snapshot storage before the call returns; there is no
batching, so a multi-step sync pass persists once per mutation.
"""

import uuid
from datetime import date, datetime
from typing import Callable, Optional, Union

from .debug import debug_print
from .interval_tree import IntervalNode, IntervalTree
from .models import (
    CalendarEvent, EventType, UserPreferences, ViewMode, WorkingHours,
    EVENT_FIELDS, Recurrence, Reminder,
)
from .storage import MemorySnapshotStorage, Snapshot, SnapshotStorageBackend
from .time_utils import TimestampLike, as_date, parse_timestamp


_TIMESTAMP_FIELDS = ("start", "end")


def _normalise_fields(changes: dict) -> dict:
    """Coerce loosely typed field values (ISO strings, type names, dicts)."""
    normalised = dict(changes)
    for name in _TIMESTAMP_FIELDS:
        if name in normalised:
            normalised[name] = parse_timestamp(normalised[name])
    if "type" in normalised:
        normalised["type"] = EventType(normalised["type"])
    recurring = normalised.get("recurring")
    if isinstance(recurring, dict):
        normalised["recurring"] = Recurrence.from_dict(recurring)
    reminders = normalised.get("reminders")
    if reminders is not None:
        normalised["reminders"] = [
            Reminder.from_dict(r) if isinstance(r, dict) else r for r in reminders
        ]
    return normalised


class EventStore:
    """
    Owns the calendar events, the user preferences and the transient view state.

    Construct it, then call load() once at process start. Until load() runs
    the store is empty and uses the default preferences.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorageBackend] = None,
        default_preferences: Optional[UserPreferences] = None,
    ):
        self._storage = storage if storage is not None else MemorySnapshotStorage()
        self._default_preferences = default_preferences or UserPreferences()

        # Insertion order is the export and query order
        self._events: dict[str, CalendarEvent] = {}
        self._index: IntervalTree = IntervalTree()
        self._handles: dict[str, IntervalNode] = {}

        self._preferences = self._default_preferences
        self._view_mode: ViewMode = self._preferences.default_view
        self._selected_date: date = date.today()

        self._on_change_callback: Optional[Callable[[], None]] = None

    # ==================== Lifecycle ====================

    def load(self) -> int:
        """
        Replace in-memory state with the persisted snapshot.

        Returns the number of events loaded.
        """
        snapshot = self._storage.load(self._default_preferences)
        self._events.clear()
        self._index.clear()
        self._handles.clear()

        if snapshot is not None:
            for event in snapshot.events:
                self._insert(event)
            if snapshot.preferences is not None:
                self._preferences = snapshot.preferences

        self._view_mode = self._preferences.default_view
        debug_print("STORE", f"Loaded {len(self._events)} events")
        return len(self._events)

    def flush(self) -> None:
        """Write the current snapshot to storage."""
        self._storage.save(Snapshot(list(self._events.values()), self._preferences))

    def set_on_change_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_change_callback = callback

    def _commit(self) -> None:
        self.flush()
        if self._on_change_callback:
            self._on_change_callback()

    # ==================== Index ====================

    def _insert(self, event: CalendarEvent) -> None:
        self._events[event.id] = event
        self._handles[event.id] = self._index.insert(event.start, event.end, event.id)

    def _reindex(self, event: CalendarEvent) -> None:
        self._index.remove(self._handles[event.id])
        self._handles[event.id] = self._index.insert(event.start, event.end, event.id)

    def intersecting(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        """Events whose [start, end] overlaps [start, end], in store order."""
        matched = {node.data for node in self._index.intersecting(start, end)}
        return [e for eid, e in self._events.items() if eid in matched]

    # ==================== Event CRUD ====================

    def add_event(self, **fields) -> str:
        """
        Create an event and return its new id.

        Accepts every CalendarEvent field except id. start/end may be ISO
        strings; color defaults from the preference colour map.
        No linked_id uniqueness check is made here.
        """
        if "id" in fields:
            raise TypeError("add_event() assigns the id itself")
        unknown = set(fields) - EVENT_FIELDS
        if unknown:
            raise TypeError(f"Unknown event fields: {sorted(unknown)}")

        if "type" not in fields:
            raise TypeError("add_event() requires a type")

        values = _normalise_fields(fields)
        if values.get("color") is None:
            values["color"] = self._preferences.color_for(values["type"])

        event_id = str(uuid.uuid4())
        event = CalendarEvent(id=event_id, **values)
        self._insert(event)
        debug_print("STORE", f"add_event({event_id}): {event.type.value} {event.title!r}")
        self._commit()
        return event_id

    def update_event(self, event_id: str, **changes) -> bool:
        """
        Merge fields into an existing event.

        Returns False, without raising or persisting, if the id is unknown.
        """
        if "id" in changes:
            raise TypeError("The id of an event cannot be changed")
        unknown = set(changes) - EVENT_FIELDS
        if unknown:
            raise TypeError(f"Unknown event fields: {sorted(unknown)}")

        current = self._events.get(event_id)
        if current is None:
            debug_print("STORE", f"update_event({event_id}): not found")
            return False

        updated = current.merged(_normalise_fields(changes))
        self._events[event_id] = updated
        if (updated.start, updated.end) != (current.start, current.end):
            self._reindex(updated)
        debug_print("STORE", f"update_event({event_id}): {sorted(changes)}")
        self._commit()
        return True

    def delete_event(self, event_id: str) -> bool:
        """Remove an event. Returns False if the id is unknown."""
        if event_id not in self._events:
            debug_print("STORE", f"delete_event({event_id}): not found")
            return False

        del self._events[event_id]
        self._index.remove(self._handles.pop(event_id))
        debug_print("STORE", f"delete_event({event_id})")
        self._commit()
        return True

    def get(self, event_id: str) -> Optional[CalendarEvent]:
        return self._events.get(event_id)

    def find_linked(self, event_type: EventType, linked_id: str) -> list[CalendarEvent]:
        """Events of a type mirroring a given external record."""
        return [
            e for e in self._events.values()
            if e.type == event_type and e.linked_id == linked_id
        ]

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def list(self) -> tuple[CalendarEvent, ...]:
        """All events in insertion order."""
        return tuple(self._events.values())

    # ==================== Preferences ====================

    @property
    def user_preferences(self) -> UserPreferences:
        return self._preferences

    def update_user_preferences(self, **changes) -> UserPreferences:
        """Merge preference fields (snake_case names) and persist."""
        data = self._preferences.to_dict()
        if "default_view" in changes:
            data["defaultView"] = ViewMode(changes.pop("default_view")).value
        if "first_day_of_week" in changes:
            data["firstDayOfWeek"] = changes.pop("first_day_of_week")
        if "working_hours" in changes:
            hours = changes.pop("working_hours")
            if isinstance(hours, WorkingHours):
                hours = {"start": hours.start, "end": hours.end}
            data["workingHours"] = {**data["workingHours"], **hours}
        if "reminders_enabled" in changes:
            data["remindersEnabled"] = changes.pop("reminders_enabled")
        if "color_map" in changes:
            color_map = {EventType(k).value: v for k, v in changes.pop("color_map").items()}
            data["colorMap"] = {**data["colorMap"], **color_map}
        if changes:
            raise TypeError(f"Unknown preference fields: {sorted(changes)}")

        self._preferences = UserPreferences.from_dict(data, self._default_preferences)
        self._commit()
        return self._preferences

    # ==================== Transient view state ====================

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def set_view_mode(self, mode: Union[ViewMode, str]) -> None:
        self._view_mode = ViewMode(mode)

    @property
    def selected_date(self) -> date:
        return self._selected_date

    def set_selected_date(self, value: TimestampLike) -> None:
        self._selected_date = as_date(value)
