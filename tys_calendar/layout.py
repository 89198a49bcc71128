"""
Time-grid layout for day and week views.

event_position() places an event vertically in an hour grid. assign_lanes()
is an optional extra step that spreads overlapping events across columns;
it never changes the vertical placement.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .models import CalendarEvent, WorkingHours
from .time_utils import minutes_of_day


DEFAULT_HOUR_HEIGHT = 60  # pixels per hour row

# Short events are drawn at least this long so they stay clickable
MIN_DURATION_MINUTES = 30


@dataclass
class GridPosition:
    top: float
    height: float


@dataclass
class LaneSlot:
    event: CalendarEvent
    column: int
    total_columns: int


def event_position(
    start: datetime,
    end: datetime,
    grid_start_hour: int,
    hour_height: float = DEFAULT_HOUR_HEIGHT,
) -> GridPosition:
    """
    Vertical offset and height of an event inside an hour grid.

    Only the time of day is used; the date parts of start and end are
    ignored. top is clamped at 0 for events starting before the grid.
    """
    start_minutes = minutes_of_day(start)
    end_minutes = minutes_of_day(end)

    top = max(0, (start_minutes - grid_start_hour * 60) / 60 * hour_height)
    duration = max(MIN_DURATION_MINUTES, end_minutes - start_minutes)
    height = duration / 60 * hour_height
    return GridPosition(top=top, height=height)


def grid_hours(working_hours: WorkingHours) -> list[int]:
    """Hour rows shown in the grid, start and end inclusive."""
    return list(range(working_hours.start, working_hours.end + 1))


def _span(event: CalendarEvent) -> tuple[int, int]:
    start = minutes_of_day(event.start)
    end = minutes_of_day(event.end)
    if end - start < MIN_DURATION_MINUTES:
        end = start + MIN_DURATION_MINUTES
    return start, end


def _overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def assign_lanes(events: Iterable[CalendarEvent]) -> list[LaneSlot]:
    """
    Column assignment for overlapping timed events of one day.

    Events that overlap (directly or through a chain) form a group; each
    group is packed greedily into the fewest columns, earliest start first.
    Spans use the same 30-minute floor as event_position(), so events that
    look overlapping on screen get separate columns. All-day events are
    ignored.
    """
    timed = [e for e in events if not e.all_day]
    spans = {e.id: _span(e) for e in timed}

    # Earliest first, longer events first on equal start
    ordered = sorted(timed, key=lambda e: (spans[e.id][0], -(spans[e.id][1] - spans[e.id][0])))

    groups: list[list[CalendarEvent]] = []
    for event in ordered:
        touching = [
            i for i, group in enumerate(groups)
            if any(_overlap(spans[event.id], spans[other.id]) for other in group)
        ]
        if not touching:
            groups.append([event])
            continue
        merged = [event]
        for i in reversed(touching):
            merged = groups.pop(i) + merged
        groups.append(merged)

    slots: list[LaneSlot] = []
    for group in groups:
        group.sort(key=lambda e: spans[e.id][0])
        column_ends: list[int] = []
        columns: dict[str, int] = {}
        for event in group:
            start, end = spans[event.id]
            for col, col_end in enumerate(column_ends):
                if start >= col_end:
                    column_ends[col] = end
                    columns[event.id] = col
                    break
            else:
                columns[event.id] = len(column_ends)
                column_ends.append(end)

        for event in group:
            slots.append(LaneSlot(event, columns[event.id], len(column_ends)))

    return slots
