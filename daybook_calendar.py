#!/usr/bin/env python3
"""
Daybook Calendar - a personal calendar with a month grid and today's agenda.

This is the command line entry point. Events live in memory only; use
--ics to load events from an iCalendar file before running a command.
"""

import sys
import argparse
from datetime import datetime
from pathlib import Path

from daybook.config import Config
from daybook.debug import set_debug
from daybook.errors import DaybookError
from daybook.event_store import EventStore
from daybook.ical_export import export_to_file, import_from_file
from daybook.query import TimeFilter, SortOrder, agenda_order, day_cell_preview, month_grid
from daybook.timezone_utils import set_timezone


def parse_month(value: str):
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Daybook Calendar - a personal calendar and agenda"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--ics",
        type=Path,
        action="append",
        default=[],
        help="Load events from an iCalendar file (may be repeated)"
    )
    parser.add_argument(
        "--sample",
        action="store_true",
        help="Load the sample events"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("today", help="Show today's agenda")

    month = commands.add_parser("month", help="Show a month grid with event counts")
    month.add_argument("month", nargs="?", type=parse_month, help="Month as YYYY-MM (default: current)")

    listing = commands.add_parser("list", help="Search and list events")
    listing.add_argument("--search", default="", help="Text to search for")
    listing.add_argument(
        "--filter", default=TimeFilter.ALL.value,
        choices=[f.value for f in TimeFilter],
    )
    listing.add_argument(
        "--sort", default=SortOrder.START_TIME.value,
        choices=[s.value for s in SortOrder],
    )

    export = commands.add_parser("export", help="Export all events to an .ics file")
    export.add_argument("path", type=Path)

    return parser.parse_args(argv)


def load_config(path):
    """Load the given config file, or the default one if it exists."""
    if path is not None:
        return Config.load(path)
    default_path = Config.get_default_config_path()
    if default_path.exists():
        return Config.load(default_path)
    return Config.default()


def format_time_range(event, config) -> str:
    if event.is_all_day:
        return config.labels.allday_label
    fmt = "%I:%M %p" if config.settings.preferences.time_format == "12h" else "%H:%M"
    start = event.start_time.strftime(fmt)
    end = event.end_time.strftime(fmt)
    if event.start_date != event.end_date:
        return f"{event.start_time:%m-%d} {start} - {event.end_time:%m-%d} {end}"
    return f"{start} - {end}"


def print_today(store, config):
    events = agenda_order(store.today_events())
    print(f"{store.now():%Y-%m-%d}")
    if not events:
        print(f"  {config.labels.no_events}")
    for event in events:
        line = f"  {format_time_range(event, config):<24} {event.title}"
        if event.location:
            line += f" @ {event.location}"
        print(line)


def print_month(store, config, month_arg):
    if month_arg:
        store.set_current_date(month_arg)
    anchor = store.current_date
    week_starts_on = config.settings.preferences.week_starts_on
    show_weekends = config.settings.display.show_weekends

    print(f"{anchor:%Y-%m}")
    for week in month_grid(anchor, week_starts_on):
        cells = []
        for day in week:
            if not show_weekends and day.weekday() >= 5:
                continue
            shown, hidden = day_cell_preview(store.events_on_day(day))
            marker = " " if day.month == anchor.month else "."
            count = len(shown) + hidden
            cells.append(f"{marker}{day.day:2d}{'*' * min(count, 3):<3}")
        print(" ".join(cells))


def print_list(store, config, args):
    events = store.search(args.search, args.filter, args.sort)
    if not events:
        print(config.labels.no_events)
    for event in events:
        status = config.labels.status_label(store.status_of(event).value)
        print(f"{event.start_time:%Y-%m-%d} {format_time_range(event, config):<24} "
              f"[{status}] {event.title}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    set_debug(args.debug)

    # Load configuration
    try:
        config = load_config(args.config)
        config.load_state()
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print(f"\nDefault configuration location: {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print("""
[General]
timezone = "Asia/Taipei"
seed_sample_events = true

[Preferences]
week_starts_on = 1
time_format = "24h"

[Notifications]
default_reminder_minutes = 15
""")
        return 1
    except DaybookError as e:
        print(f"Error loading configuration: {e}")
        return 1

    set_timezone(config.general.timezone)

    store = EventStore(default_view=config.settings.preferences.default_view)
    try:
        if args.sample or config.general.seed_sample_events:
            store.seed_sample_events()
        for ics_path in args.ics:
            import_from_file(store, ics_path)
    except (OSError, ValueError, DaybookError) as e:
        print(f"Error loading events: {e}")
        return 1

    command = args.command or "today"
    if command == "today":
        print_today(store, config)
    elif command == "month":
        print_month(store, config, args.month)
    elif command == "list":
        print_list(store, config, args)
    elif command == "export":
        try:
            count = export_to_file(store, args.path)
        except OSError as e:
            print(f"Error exporting events: {e}")
            return 1
        print(f"Exported {count} events to {args.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
