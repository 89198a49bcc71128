"""
iCalendar export and import.

Export writes one VEVENT per stored event, in store order. Event times are
wall-clock values written as UTC ("...Z"); no timezone shift is applied.
Text values go through icalendar's escaping, so ',' ';' and '\\' are
escaped and long lines are folded at 75 octets.
"""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, Optional

from icalendar import Alarm, Calendar as ICalCalendar, Event as ICalEvent

from .debug import debug_print
from .models import CalendarEvent, EventType, Recurrence, Reminder
from .time_utils import parse_timestamp, to_utc_datetime


DEFAULT_PRODID = "-//TrackYouStudy//Calendar//EN"

_FREQUENCIES = {"daily", "weekly", "monthly"}


def build_rrule(recurrence: Recurrence, utc: bool = True) -> dict:
    """RRULE dict for a recurrence descriptor."""
    rrule = {'freq': recurrence.frequency.upper()}
    if recurrence.interval and recurrence.interval > 1:
        rrule['interval'] = recurrence.interval
    if recurrence.until:
        rrule['until'] = to_utc_datetime(recurrence.until) if utc else recurrence.until
    return rrule


def to_ical_event(event: CalendarEvent, utc: bool = True) -> ICalEvent:
    """
    Build an icalendar.Event for a CalendarEvent.

    Args:
        event: The event to convert.
        utc: Write times as UTC (export). With utc=False times stay floating,
            which is what recurrence expansion against naive ranges needs.
    """
    vevent = ICalEvent()
    vevent.add('uid', event.id)
    vevent.add('summary', event.title)
    vevent.add('description', event.description)
    if utc:
        vevent.add('dtstart', to_utc_datetime(event.start))
        vevent.add('dtend', to_utc_datetime(event.end))
    else:
        vevent.add('dtstart', event.start)
        vevent.add('dtend', event.end)
    vevent.add('categories', [event.type.value.upper()])

    if event.recurring:
        vevent.add('rrule', build_rrule(event.recurring, utc))

    for reminder in event.reminders or []:
        alarm = Alarm()
        alarm.add('action', 'DISPLAY')
        alarm.add('description', event.title)
        alarm.add('trigger', timedelta(minutes=-reminder.time))
        vevent.add_component(alarm)

    return vevent


def build_calendar(events: Iterable[CalendarEvent], prodid: str = DEFAULT_PRODID,
                   utc: bool = True) -> ICalCalendar:
    vcal = ICalCalendar()
    vcal.add('version', '2.0')
    vcal.add('prodid', prodid)
    for event in events:
        vcal.add_component(to_ical_event(event, utc))
    return vcal


def export_to_ics(events: Iterable[CalendarEvent], prodid: str = DEFAULT_PRODID) -> str:
    """
    Serialise events to iCalendar text.

    The output is deterministic for a given event sequence; events are
    not sorted.
    """
    events = list(events)
    text = build_calendar(events, prodid).to_ical().decode('utf-8')
    debug_print("ICS", f"Exported {len(events)} events")
    return text


def write_ics_file(path: Path, text: str) -> Path:
    """Write exported text to a .ics file, creating parent directories."""
    path = Path(path)
    if path.suffix.lower() != '.ics':
        path = path.with_suffix('.ics')
    path.parent.mkdir(parents=True, exist_ok=True)
    # icalendar output already carries CRLF line endings
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(text)
    return path


# ==================== Import ====================

def _event_type_from_categories(component: ICalEvent) -> EventType:
    categories = component.get('categories')
    if categories is None:
        return EventType.STUDY_SESSION
    if not isinstance(categories, list):
        categories = [categories]
    by_upper_name = {t.value.upper(): t for t in EventType}
    for prop in categories:
        for cat in getattr(prop, 'cats', [prop]):
            event_type = by_upper_name.get(str(cat).upper())
            if event_type is not None:
                return event_type
    return EventType.STUDY_SESSION


def _recurrence_from_rrule(component: ICalEvent) -> Optional[Recurrence]:
    rrule = component.get('rrule')
    if not rrule:
        return None
    freq = str(rrule.get('FREQ', [''])[0]).lower()
    if freq not in _FREQUENCIES:
        debug_print("ICS", f"Ignoring unsupported recurrence frequency {freq!r}")
        return None
    interval = int(rrule.get('INTERVAL', [1])[0])
    until = rrule.get('UNTIL', [None])[0]
    return Recurrence(
        frequency=freq,
        interval=interval,
        until=parse_timestamp(until) if until is not None else None,
    )


def _reminders_from_alarms(component: ICalEvent) -> Optional[list[Reminder]]:
    reminders = []
    for alarm in component.walk('VALARM'):
        trigger = alarm.get('trigger')
        if trigger is None or not isinstance(trigger.dt, timedelta):
            continue
        reminders.append(Reminder(time=int(-trigger.dt.total_seconds() // 60)))
    return reminders or None


def import_from_ics(ical_text: str) -> list[dict]:
    """
    Parse iCalendar text into add_event() keyword dicts.

    UIDs are not kept; the store assigns fresh ids. DATE values make
    all-day events, whose exclusive DTEND is pulled back one day.
    """
    vcal = ICalCalendar.from_ical(ical_text)
    imported = []

    for component in vcal.walk('VEVENT'):
        dtstart = component.get('dtstart')
        if dtstart is None:
            debug_print("ICS", "Skipping VEVENT without DTSTART")
            continue

        start_value = dtstart.dt
        all_day = isinstance(start_value, date) and not isinstance(start_value, datetime)
        start = parse_timestamp(start_value)

        dtend = component.get('dtend')
        if dtend is not None:
            end = parse_timestamp(dtend.dt)
            if all_day and end > start:
                end -= timedelta(days=1)
        else:
            end = start if all_day else start + timedelta(hours=1)

        imported.append({
            "title": str(component.get('summary', '')),
            "description": str(component.get('description', '')),
            "start": start,
            "end": end,
            "all_day": all_day,
            "type": _event_type_from_categories(component),
            "recurring": _recurrence_from_rrule(component),
            "reminders": _reminders_from_alarms(component),
        })

    debug_print("ICS", f"Imported {len(imported)} events")
    return imported
