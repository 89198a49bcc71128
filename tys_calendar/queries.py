"""
Temporal queries used by every calendar view.

All queries are read-only and recomputed per call; results come back in
store order, so they match a linear filter over EventStore.list().
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from recurring_ical_events import of as recurring_events_of

from .debug import debug_print
from .event_store import EventStore
from .ics_export import build_calendar
from .models import CalendarEvent, ViewMode
from .navigation import visible_range
from .time_utils import TimestampLike, as_date, day_bounds, parse_timestamp


@dataclass
class Occurrence:
    """One concrete appearance of an event, recurring or not."""
    event: CalendarEvent
    start: datetime
    end: datetime


class TemporalQueryEngine:
    def __init__(self, store: EventStore):
        self._store = store

    def events_for_date(self, day: TimestampLike) -> list[CalendarEvent]:
        """
        Events shown on a calendar day.

        All-day events match only the day of their start, even when their
        end lies on a later day. Timed events match when [start, end]
        intersects the day from 00:00:00.000 to 23:59:59.999.
        """
        target = as_date(day)
        day_start, day_end = day_bounds(target)
        timed = {e.id for e in self._store.intersecting(day_start, day_end) if not e.all_day}
        return [
            e for e in self._store.list()
            if (e.start.date() == target if e.all_day else e.id in timed)
        ]

    def events_for_range(self, range_start: TimestampLike, range_end: TimestampLike) -> list[CalendarEvent]:
        """Events with start <= range_end and end >= range_start (both inclusive)."""
        return self._store.intersecting(parse_timestamp(range_start), parse_timestamp(range_end))

    def events_for_view(
        self,
        view_mode: Optional[Union[ViewMode, str]] = None,
        selected: Optional[date] = None,
        first_day_of_week: Optional[int] = None,
    ) -> list[CalendarEvent]:
        """
        Range query over the window the given (or current) view displays.

        Unset arguments come from the store's view state and preferences.
        """
        mode = view_mode if view_mode is not None else self._store.view_mode
        selected = selected if selected is not None else self._store.selected_date
        if first_day_of_week is None:
            first_day_of_week = self._store.user_preferences.first_day_of_week
        start, end = visible_range(mode, selected, first_day_of_week)
        return self._store.intersecting(start, end)

    def occurrences_in_range(self, range_start: TimestampLike, range_end: TimestampLike) -> list[Occurrence]:
        """
        Occurrences overlapping [range_start, range_end].

        Recurring events are expanded up to their 'until' bound; other
        events yield one occurrence each, matched like events_for_range().
        Sorted by start time, ties kept in store order.
        """
        start = parse_timestamp(range_start)
        end = parse_timestamp(range_end)

        occurrences = [
            Occurrence(e, e.start, e.end)
            for e in self._store.intersecting(start, end)
            if e.recurring is None
        ]

        recurring = [e for e in self._store.list() if e.recurring is not None]
        if recurring:
            by_id = {e.id: e for e in recurring}
            vcal = build_calendar(recurring, utc=False)
            # between() excludes its end point; widen by one tick and filter inclusively
            for component in recurring_events_of(vcal).between(start, end + timedelta(microseconds=1)):
                event = by_id[str(component['UID'])]
                occ_start = parse_timestamp(component['DTSTART'].dt)
                dtend = component.get('DTEND')
                occ_end = parse_timestamp(dtend.dt) if dtend is not None else occ_start
                if occ_start <= end and occ_end >= start:
                    occurrences.append(Occurrence(event, occ_start, occ_end))
            debug_print("QUERY", f"Expanded {len(recurring)} recurring events")

        order = {eid: i for i, eid in enumerate(e.id for e in self._store.list())}
        occurrences.sort(key=lambda o: (o.start, order[o.event.id]))
        return occurrences
