"""Tests for the data model and timestamp helpers."""

from datetime import date, datetime

import pytest
import pytz

from tys_calendar.models import CalendarEvent, EventType, PomodoroSession, Task, UserPreferences
from tys_calendar.time_utils import (
    InvalidTimestampError, day_bounds, parse_timestamp, to_iso, to_utc_datetime,
)


class TestParseTimestamp:
    def test_utc_suffix(self):
        assert parse_timestamp("2024-05-01T10:00:00.000Z") == datetime(2024, 5, 1, 10)

    def test_offset_is_dropped_without_shift(self):
        assert parse_timestamp("2024-05-01T10:00:00+02:00") == datetime(2024, 5, 1, 10)

    def test_date_becomes_midnight(self):
        assert parse_timestamp(date(2024, 5, 1)) == datetime(2024, 5, 1)
        assert parse_timestamp("2024-05-01") == datetime(2024, 5, 1)

    def test_precision_is_cut_to_milliseconds(self):
        assert parse_timestamp("2024-05-01T10:00:00.123456Z") == datetime(2024, 5, 1, 10, 0, 0, 123000)
        assert parse_timestamp(datetime(2024, 5, 1, 10, 0, 0, 999999)) == datetime(2024, 5, 1, 10, 0, 0, 999000)

    def test_aware_datetime_is_made_naive(self):
        aware = pytz.timezone("Europe/Berlin").localize(datetime(2024, 5, 1, 10))
        assert parse_timestamp(aware) == datetime(2024, 5, 1, 10)

    @pytest.mark.parametrize("value", ["", "   ", "tomorrow", "2024-13-01", None])
    def test_invalid(self, value):
        with pytest.raises(InvalidTimestampError):
            parse_timestamp(value)


class TestTimeHelpers:
    def test_to_iso(self):
        assert to_iso(datetime(2024, 5, 1, 10, 0, 0, 123456)) == "2024-05-01T10:00:00.123Z"

    def test_to_utc_keeps_wall_clock(self):
        assert to_utc_datetime(datetime(2024, 5, 1, 10)) == pytz.UTC.localize(datetime(2024, 5, 1, 10))

    def test_day_bounds(self):
        start, end = day_bounds(date(2024, 5, 1))
        assert start == datetime(2024, 5, 1)
        assert end == datetime(2024, 5, 1, 23, 59, 59, 999000)


class TestCalendarEvent:
    def test_dict_round_trip_omits_unset_optionals(self):
        event = CalendarEvent(id="e1", title="A", start=datetime(2024, 1, 1, 9),
                              end=datetime(2024, 1, 1, 9, 45), type=EventType.POMODORO, color="#dc2626")
        data = event.to_dict()
        assert data["type"] == "pomodoro"
        assert "linkedId" not in data and "completed" not in data
        assert CalendarEvent.from_dict(data) == event
        assert event.duration_minutes == 45
        assert not event.is_linked


class TestUserPreferences:
    def test_rejects_unsupported_first_day(self):
        with pytest.raises(ValueError):
            UserPreferences(first_day_of_week=2)

    def test_unknown_colour_key_in_snapshot_fails(self):
        with pytest.raises(ValueError):
            UserPreferences.from_dict({"colorMap": {"party": "#fff"}})


class TestExternalRecords:
    def test_task_from_dict(self):
        task = Task.from_dict({"id": "t1", "title": "Read", "dueDate": "2024-05-01", "status": "Completed"})
        assert task.due_date == "2024-05-01"
        assert task.is_completed

    def test_session_from_dict(self):
        session = PomodoroSession.from_dict(
            {"id": "s1", "startTime": "2024-05-01T10:00:00Z", "duration": 25, "taskId": "t1"}
        )
        assert session.task_id == "t1"
        assert session.end_time is None
        assert session.completed is False
