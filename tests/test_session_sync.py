"""Tests for SessionSyncReconciler and CalendarSync."""

from datetime import datetime

from tys_calendar.config import Config
from tys_calendar.event_store import EventStore
from tys_calendar.models import EventType
from tys_calendar.reconcilers import CalendarSync, SessionSyncReconciler

from tests.factories import make_session, make_task


def pomodoro_events(store):
    return [e for e in store.list() if e.type is EventType.POMODORO]


class TestSessionCreation:
    def test_end_from_duration(self, store, session_source):
        session_source.sessions = [make_session("s1", duration=25)]
        result = SessionSyncReconciler(store, session_source).sync()

        assert result.added == 1
        event = pomodoro_events(store)[0]
        assert event.start == datetime(2024, 5, 1, 10)
        assert event.end == datetime(2024, 5, 1, 10, 25)
        assert event.all_day is False
        assert event.linked_id == "s1"
        assert event.color == "#dc2626"
        assert event.completed is True

    def test_end_time_wins_over_duration(self, store, session_source):
        session_source.sessions = [make_session("s1", duration=25, end_time="2024-05-01T10:40:00.000Z")]
        SessionSyncReconciler(store, session_source).sync()
        assert pomodoro_events(store)[0].end == datetime(2024, 5, 1, 10, 40)

    def test_titles_without_task(self, store, session_source):
        session_source.sessions = [make_session("s1")]
        SessionSyncReconciler(store, session_source).sync()
        event = pomodoro_events(store)[0]
        assert event.title == "Pomodoro Session"
        assert event.description == "Pomodoro study session"

    def test_titles_with_task(self, store, session_source, task_source):
        task_source.tasks = [make_task("t1", "Calculus")]
        session_source.sessions = [make_session("s1", task_id="t1")]
        SessionSyncReconciler(store, session_source, task_source).sync()
        event = pomodoro_events(store)[0]
        assert event.title == "Pomodoro: Calculus"
        assert event.description == "Pomodoro session for task: Calculus"

    def test_unknown_task_falls_back_to_generic_title(self, store, session_source, task_source):
        session_source.sessions = [make_session("s1", task_id="gone")]
        SessionSyncReconciler(store, session_source, task_source).sync()
        assert pomodoro_events(store)[0].title == "Pomodoro Session"

    def test_second_pass_makes_no_changes(self, store, storage, session_source):
        session_source.sessions = [make_session("s1"), make_session("s2", start_time="2024-05-01T11:00:00Z")]
        reconciler = SessionSyncReconciler(store, session_source)
        reconciler.sync()
        saves = storage.save_count

        assert not reconciler.sync().changed
        assert storage.save_count == saves

    def test_malformed_start_is_skipped(self, store, session_source):
        session_source.sessions = [make_session("s1", start_time="yesterday"), make_session("s2")]
        result = SessionSyncReconciler(store, session_source).sync()
        assert result.skipped == 1
        assert [e.linked_id for e in pomodoro_events(store)] == ["s2"]


class TestCreateOnlyMode:
    def test_removed_session_keeps_event(self, store, session_source):
        session_source.sessions = [make_session("s1")]
        reconciler = SessionSyncReconciler(store, session_source)
        reconciler.sync()

        session_source.sessions = []
        result = reconciler.sync()
        assert not result.changed
        assert len(pomodoro_events(store)) == 1

    def test_changed_session_is_not_refreshed(self, store, session_source):
        session_source.sessions = [make_session("s1", duration=25)]
        reconciler = SessionSyncReconciler(store, session_source)
        reconciler.sync()

        session_source.sessions = [make_session("s1", duration=50)]
        reconciler.sync()
        assert pomodoro_events(store)[0].end == datetime(2024, 5, 1, 10, 25)


class TestMirrorMode:
    def test_removed_session_deletes_event(self, store, session_source):
        session_source.sessions = [make_session("s1"), make_session("s2")]
        reconciler = SessionSyncReconciler(store, session_source, mirror_changes=True)
        reconciler.sync()

        session_source.sessions = [make_session("s2")]
        result = reconciler.sync()
        assert result.deleted == 1
        assert [e.linked_id for e in pomodoro_events(store)] == ["s2"]

    def test_changed_session_is_refreshed(self, store, session_source):
        session_source.sessions = [make_session("s1", duration=25, completed=False)]
        reconciler = SessionSyncReconciler(store, session_source, mirror_changes=True)
        reconciler.sync()

        session_source.sessions = [make_session("s1", duration=50, completed=True)]
        result = reconciler.sync()
        assert result.updated == 1
        event = pomodoro_events(store)[0]
        assert event.end == datetime(2024, 5, 1, 10, 50)
        assert event.completed is True

    def test_duplicates_are_removed(self, store, session_source):
        for _ in range(2):
            store.add_event(title="Pomodoro Session", description="Pomodoro study session",
                            start="2024-05-01T10:00:00", end="2024-05-01T10:25:00",
                            type="pomodoro", linked_id="s1", completed=True)
        session_source.sessions = [make_session("s1")]

        result = SessionSyncReconciler(store, session_source, mirror_changes=True).sync()
        assert result.deleted == 1
        assert len(store.find_linked(EventType.POMODORO, "s1")) == 1

    def test_reloaded_store_stays_idempotent(self, storage, session_source):
        session_source.sessions = [make_session("s1", start_time="2024-05-01T10:00:00.987654Z", duration=25)]
        first = EventStore(storage)
        first.load()
        SessionSyncReconciler(first, session_source, mirror_changes=True).sync()

        second = EventStore(storage)
        second.load()
        assert not SessionSyncReconciler(second, session_source, mirror_changes=True).sync().changed


class TestCalendarSync:
    def test_sync_all_runs_both_passes(self, store, task_source, session_source):
        task_source.tasks = [make_task("t1")]
        session_source.sessions = [make_session("s1", task_id="t1")]

        results = CalendarSync(store, task_source, session_source).sync_all()

        assert results["tasks"].added == 1
        assert results["pomodoro"].added == 1
        assert results["pomodoro"].to_dict() == {"added": 1, "updated": 0, "deleted": 0, "skipped": 0}
        assert len(store) == 2

    def test_config_enables_mirroring(self, store, task_source, session_source):
        config = Config.from_dict({"Sync": {"mirror_session_changes": True}})
        session_source.sessions = [make_session("s1")]
        sync = CalendarSync(store, task_source, session_source, config)
        sync.sync_pomodoro()

        session_source.sessions = []
        assert sync.sync_pomodoro().deleted == 1
        assert len(store) == 0
