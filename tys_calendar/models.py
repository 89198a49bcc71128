"""
Data model for the calendar engine.

CalendarEvent is the record owned by the EventStore. Task and
PomodoroSession are read-only mirrors of records held by external stores.
Serialisation uses the camelCase keys of the browser snapshot so that an
exported "calendar-storage" document loads unchanged.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .time_utils import parse_timestamp, to_iso


class EventType(str, Enum):
    TASK = "task"
    STUDY_SESSION = "studySession"
    POMODORO = "pomodoro"
    EXAM = "exam"


class ViewMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


COMPLETED_STATUS = "Completed"

DEFAULT_COLOR_MAP: dict[EventType, str] = {
    EventType.TASK: "#4f46e5",           # indigo-600
    EventType.STUDY_SESSION: "#059669",  # emerald-600
    EventType.POMODORO: "#dc2626",       # red-600
    EventType.EXAM: "#9333ea",           # purple-600
}


@dataclass
class Recurrence:
    """Recurrence descriptor. Stored and exported, never expanded in place."""
    frequency: str  # "daily", "weekly" or "monthly"
    interval: int = 1
    until: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "until": to_iso(self.until) if self.until else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Recurrence':
        until = data.get("until")
        return cls(
            frequency=data["frequency"],
            interval=data.get("interval", 1),
            until=parse_timestamp(until) if until else None,
        )


@dataclass
class Reminder:
    time: int  # minutes before the event
    sent: bool = False

    def to_dict(self) -> dict:
        return {"time": self.time, "sent": self.sent}

    @classmethod
    def from_dict(cls, data: dict) -> 'Reminder':
        return cls(time=data["time"], sent=data.get("sent", False))


@dataclass
class CalendarEvent:
    """
    A calendar entry.

    start/end are naive wall-clock datetimes. For all-day events only the
    calendar day of start is meaningful for day membership.
    """
    id: str
    title: str
    start: datetime
    end: datetime
    type: EventType
    color: str
    description: str = ""
    all_day: bool = False
    linked_id: Optional[str] = None
    completed: Optional[bool] = None
    recurring: Optional[Recurrence] = None
    reminders: Optional[list[Reminder]] = None

    @property
    def is_linked(self) -> bool:
        return self.linked_id is not None

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def merged(self, changes: dict) -> 'CalendarEvent':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "start": to_iso(self.start),
            "end": to_iso(self.end),
            "allDay": self.all_day,
            "type": self.type.value,
            "color": self.color,
        }
        # Optional keys are omitted when unset, as in the browser snapshot
        if self.linked_id is not None:
            data["linkedId"] = self.linked_id
        if self.completed is not None:
            data["completed"] = self.completed
        if self.recurring is not None:
            data["recurring"] = self.recurring.to_dict()
        if self.reminders is not None:
            data["reminders"] = [r.to_dict() for r in self.reminders]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CalendarEvent':
        recurring = data.get("recurring")
        reminders = data.get("reminders")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            start=parse_timestamp(data["start"]),
            end=parse_timestamp(data["end"]),
            all_day=data.get("allDay", False),
            type=EventType(data["type"]),
            color=data.get("color", DEFAULT_COLOR_MAP[EventType(data["type"])]),
            linked_id=data.get("linkedId"),
            completed=data.get("completed"),
            recurring=Recurrence.from_dict(recurring) if recurring else None,
            reminders=[Reminder.from_dict(r) for r in reminders] if reminders is not None else None,
        )


EVENT_FIELDS = frozenset(f.name for f in fields(CalendarEvent))


@dataclass
class WorkingHours:
    start: int = 9   # 0-23
    end: int = 17    # 0-23


@dataclass
class UserPreferences:
    """Persisted calendar preferences."""
    default_view: ViewMode = ViewMode.WEEK
    first_day_of_week: int = 0  # 0 = Sunday, 1 = Monday, 6 = Saturday
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    reminders_enabled: bool = True
    color_map: dict[EventType, str] = field(default_factory=lambda: dict(DEFAULT_COLOR_MAP))

    def __post_init__(self):
        if self.first_day_of_week not in (0, 1, 6):
            raise ValueError(f"first_day_of_week must be 0, 1 or 6, got {self.first_day_of_week}")

    def color_for(self, event_type: EventType) -> str:
        return self.color_map.get(event_type, DEFAULT_COLOR_MAP[event_type])

    def to_dict(self) -> dict:
        return {
            "defaultView": self.default_view.value,
            "firstDayOfWeek": self.first_day_of_week,
            "workingHours": {"start": self.working_hours.start, "end": self.working_hours.end},
            "remindersEnabled": self.reminders_enabled,
            "colorMap": {t.value: c for t, c in self.color_map.items()},
        }

    @classmethod
    def from_dict(cls, data: dict, defaults: Optional['UserPreferences'] = None) -> 'UserPreferences':
        """Build preferences from snapshot data; missing keys come from defaults."""
        base = defaults or cls()
        hours = data.get("workingHours") or {}
        color_map = dict(base.color_map)
        for key, color in (data.get("colorMap") or {}).items():
            color_map[EventType(key)] = color
        return cls(
            default_view=ViewMode(data.get("defaultView", base.default_view.value)),
            first_day_of_week=data.get("firstDayOfWeek", base.first_day_of_week),
            working_hours=WorkingHours(
                start=hours.get("start", base.working_hours.start),
                end=hours.get("end", base.working_hours.end),
            ),
            reminders_enabled=data.get("remindersEnabled", base.reminders_enabled),
            color_map=color_map,
        )


@dataclass
class Task:
    """A task as exposed by the task store."""
    id: str
    title: str
    due_date: str  # ISO timestamp, parsed by the reconciler
    description: str = ""
    status: str = "Pending"

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED_STATUS

    @classmethod
    def from_dict(cls, data: dict) -> 'Task':
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            due_date=data.get("dueDate", ""),
            status=data.get("status", "Pending"),
        )


@dataclass
class PomodoroSession:
    """A pomodoro session as exposed by the pomodoro store."""
    id: str
    start_time: str
    duration: int  # minutes
    end_time: Optional[str] = None
    task_id: Optional[str] = None
    completed: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'PomodoroSession':
        return cls(
            id=data["id"],
            start_time=data.get("startTime", ""),
            duration=data.get("duration", 0),
            end_time=data.get("endTime"),
            task_id=data.get("taskId"),
            completed=data.get("completed", False),
        )
