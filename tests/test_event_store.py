"""Tests for EventStore CRUD, preferences and view state."""

from datetime import date, datetime

import pytest

from tys_calendar.event_store import EventStore
from tys_calendar.models import EventType, Recurrence, Reminder, ViewMode, WorkingHours
from tys_calendar.storage import MemorySnapshotStorage

from tests.factories import add_timed


class TestAddEvent:
    def test_returns_unique_ids(self, store):
        """Every add assigns a fresh id."""
        a = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        b = add_timed(store, "B", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        assert a != b
        assert len(store) == 2
        assert a in store and b in store

    def test_parses_iso_strings_and_type_names(self, store):
        event_id = store.add_event(
            title="Final", start="2024-06-10T09:00:00.000Z", end="2024-06-10T11:00:00.000Z", type="exam",
        )
        event = store.get(event_id)
        assert event.start == datetime(2024, 6, 10, 9)
        assert event.end == datetime(2024, 6, 10, 11)
        assert event.type is EventType.EXAM

    def test_color_defaults_from_preferences(self, store):
        event_id = add_timed(store, "Exam", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10), EventType.EXAM)
        assert store.get(event_id).color == "#9333ea"

    def test_explicit_color_is_kept(self, store):
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10), color="#000000")
        assert store.get(event_id).color == "#000000"

    def test_recurrence_and_reminder_dicts_are_converted(self, store):
        event_id = add_timed(
            store, "Lecture", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10),
            recurring={"frequency": "weekly", "interval": 1, "until": None},
            reminders=[{"time": 15, "sent": False}],
        )
        event = store.get(event_id)
        assert event.recurring == Recurrence("weekly")
        assert event.reminders == [Reminder(15)]

    def test_rejects_explicit_id(self, store):
        with pytest.raises(TypeError):
            store.add_event(id="x", title="A", start="2024-01-01", end="2024-01-01", type="task")

    def test_rejects_unknown_field(self, store):
        with pytest.raises(TypeError):
            store.add_event(title="A", start="2024-01-01", end="2024-01-01", type="task", location="here")

    def test_requires_type(self, store):
        with pytest.raises(TypeError):
            store.add_event(title="A", start="2024-01-01", end="2024-01-01")

    def test_persists_after_each_add(self, store, storage):
        add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        add_timed(store, "B", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        assert storage.save_count == 2
        assert [e["title"] for e in storage.data["events"]] == ["A", "B"]


class TestUpdateEvent:
    def test_merges_fields(self, store):
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        assert store.update_event(event_id, title="Renamed", completed=True) is True

        event = store.get(event_id)
        assert event.title == "Renamed"
        assert event.completed is True
        assert event.start == datetime(2024, 1, 1, 9)

    def test_moving_an_event_updates_range_queries(self, store):
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        store.update_event(event_id, start="2024-01-02T09:00:00", end="2024-01-02T10:00:00")

        assert store.intersecting(datetime(2024, 1, 1), datetime(2024, 1, 1, 23)) == []
        assert [e.id for e in store.intersecting(datetime(2024, 1, 2), datetime(2024, 1, 2, 23))] == [event_id]

    def test_unknown_id_is_a_noop(self, store, storage):
        assert store.update_event("missing", title="X") is False
        assert storage.save_count == 0

    def test_id_cannot_change(self, store):
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        with pytest.raises(TypeError):
            store.update_event(event_id, id="other")

    def test_keeps_store_order(self, store):
        a = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        b = add_timed(store, "B", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        store.update_event(a, title="A2")
        assert [e.id for e in store.list()] == [a, b]


class TestDeleteEvent:
    def test_removes_event(self, store):
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        assert store.delete_event(event_id) is True
        assert store.get(event_id) is None
        assert store.intersecting(datetime(2024, 1, 1), datetime(2024, 1, 2)) == []

    def test_unknown_id_returns_false(self, store, storage):
        assert store.delete_event("missing") is False
        assert storage.save_count == 0


class TestFindLinked:
    def test_matches_type_and_linked_id(self, store):
        task_event = store.add_event(title="T", start="2024-01-01", end="2024-01-01", type="task",
                                     all_day=True, linked_id="t1")
        store.add_event(title="P", start="2024-01-01T09:00", end="2024-01-01T09:25", type="pomodoro",
                        linked_id="t1")
        assert [e.id for e in store.find_linked(EventType.TASK, "t1")] == [task_event]
        assert store.find_linked(EventType.TASK, "t2") == []


class TestLoad:
    def test_restores_events_and_preferences(self):
        storage = MemorySnapshotStorage()
        first = EventStore(storage)
        first.load()
        event_id = add_timed(first, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        first.update_user_preferences(first_day_of_week=1, default_view="day")

        second = EventStore(storage)
        assert second.load() == 1
        assert second.get(event_id).title == "A"
        assert second.user_preferences.first_day_of_week == 1
        assert second.view_mode is ViewMode.DAY

    def test_empty_storage_uses_defaults(self, store):
        prefs = store.user_preferences
        assert len(store) == 0
        assert prefs.default_view is ViewMode.WEEK
        assert prefs.first_day_of_week == 0
        assert prefs.working_hours == WorkingHours(9, 17)

    def test_change_callback_runs_after_each_mutation(self, store):
        calls = []
        store.set_on_change_callback(lambda: calls.append(len(store)))
        event_id = add_timed(store, "A", datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        store.update_event(event_id, title="B")
        store.delete_event(event_id)
        assert calls == [1, 1, 0]


class TestPreferences:
    def test_update_persists(self, store, storage):
        store.update_user_preferences(working_hours={"start": 8}, color_map={"task": "#111111"})

        prefs = storage.data["userPreferences"]
        assert prefs["workingHours"] == {"start": 8, "end": 17}
        assert prefs["colorMap"]["task"] == "#111111"
        assert prefs["colorMap"]["exam"] == "#9333ea"

    def test_new_colour_applies_to_new_events(self, store):
        store.update_user_preferences(color_map={EventType.TASK: "#111111"})
        event_id = store.add_event(title="T", start="2024-01-01", end="2024-01-01", type="task")
        assert store.get(event_id).color == "#111111"

    def test_unknown_field_rejected(self, store):
        with pytest.raises(TypeError):
            store.update_user_preferences(theme="dark")

    def test_invalid_first_day_rejected(self, store):
        with pytest.raises(ValueError):
            store.update_user_preferences(first_day_of_week=3)


class TestViewState:
    def test_view_state_is_not_persisted(self, store, storage):
        store.set_view_mode("month")
        store.set_selected_date("2024-02-03T10:00:00")
        assert store.view_mode is ViewMode.MONTH
        assert store.selected_date == date(2024, 2, 3)
        assert storage.save_count == 0
