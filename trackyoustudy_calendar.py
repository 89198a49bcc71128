#!/usr/bin/env python3
"""
TrackYouStudy Calendar - calendar engine for the study tracker.

This is the main entry point: it syncs tasks and pomodoro sessions into the
calendar snapshot, prints day/range agendas and grid layout, and imports or
exports iCalendar files.
"""

import sys
import argparse
from pathlib import Path

from tys_calendar.config import Config
from tys_calendar.debug import is_debug, set_debug
from tys_calendar.event_store import EventStore
from tys_calendar.ics_export import export_to_ics, import_from_ics, write_ics_file
from tys_calendar.layout import assign_lanes, event_position
from tys_calendar.queries import TemporalQueryEngine
from tys_calendar.reconcilers import CalendarSync
from tys_calendar.sources import JsonPomodoroSource, JsonTaskSource
from tys_calendar.storage import JsonSnapshotStorage, PersistenceError


EXAMPLE_CONFIG = """
[General]
state_file = "~/.local/state/trackyoustudy/calendar-storage.json"

[Preferences]
first_day_of_week = 1
working_hours_start = 8
working_hours_end = 20

[Sync]
tasks_file = "~/trackyoustudy/task-storage.json"
sessions_file = "~/trackyoustudy/pomodoro-storage.json"
mirror_session_changes = false
"""


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="TrackYouStudy Calendar - study calendar sync, queries and iCalendar export"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sync", help="Mirror tasks and pomodoro sessions into the calendar")

    day = commands.add_parser("day", help="List the events of a day")
    day.add_argument("date", help="ISO date, e.g. 2024-05-01")

    range_cmd = commands.add_parser("range", help="List events overlapping a time range")
    range_cmd.add_argument("start", help="ISO timestamp")
    range_cmd.add_argument("end", help="ISO timestamp")

    layout = commands.add_parser("layout", help="Show the hour-grid layout of a day")
    layout.add_argument("date", help="ISO date")

    export = commands.add_parser("export", help="Write the calendar as an .ics file")
    export.add_argument("-o", "--output", type=Path, help="Output file (default from config)")

    import_cmd = commands.add_parser("import", help="Add the events of an .ics file")
    import_cmd.add_argument("file", type=Path)

    return parser.parse_args(argv)


def format_event(event) -> str:
    if event.all_day:
        when = f"{event.start:%Y-%m-%d} all day"
    else:
        when = f"{event.start:%Y-%m-%d %H:%M} - {event.end:%H:%M}"
    done = " [done]" if event.completed else ""
    return f"{when}  {event.type.value:<12} {event.title}{done}"


def run(args, config: Config) -> int:
    store = EventStore(JsonSnapshotStorage(config.state_file), config.default_preferences())
    store.load()
    queries = TemporalQueryEngine(store)

    if args.command == "sync":
        if config.sync.tasks_file is None or config.sync.sessions_file is None:
            print("Error: [Sync] tasks_file and sessions_file must be configured")
            return 1
        sync = CalendarSync(
            store,
            JsonTaskSource(config.sync.tasks_file),
            JsonPomodoroSource(config.sync.sessions_file),
            config,
        )
        for name, result in sync.sync_all().items():
            print(f"{name}: +{result.added} ~{result.updated} -{result.deleted} skipped={result.skipped}")

    elif args.command == "day":
        for event in queries.events_for_date(args.date):
            print(format_event(event))

    elif args.command == "range":
        for event in queries.events_for_range(args.start, args.end):
            print(format_event(event))

    elif args.command == "layout":
        events = [e for e in queries.events_for_date(args.date) if not e.all_day]
        grid_start = store.user_preferences.working_hours.start
        for slot in assign_lanes(events):
            pos = event_position(slot.event.start, slot.event.end, grid_start, config.layout.hour_height)
            print(f"top={pos.top:.0f} height={pos.height:.0f} "
                  f"lane={slot.column + 1}/{slot.total_columns}  {slot.event.title}")

    elif args.command == "export":
        output = args.output or Path(config.export.filename)
        path = write_ics_file(output, export_to_ics(store.list(), config.export.prodid))
        print(f"Exported {len(store)} events to {path}")

    elif args.command == "import":
        with open(args.file, 'r', encoding='utf-8', newline='') as f:
            imported = import_from_ics(f.read())
        for fields in imported:
            store.add_event(**fields)
        print(f"Imported {len(imported)} events from {args.file}")

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.load_or_default(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print(EXAMPLE_CONFIG)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    set_debug(args.debug or config.debug)
    if is_debug():
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  State file: {config.state_file}")

    try:
        code = run(args, config)
    except (PersistenceError, OSError, ValueError) as e:
        print(f"Error: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
