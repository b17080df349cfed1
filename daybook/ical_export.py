"""
iCalendar export and import for Daybook events.

Events are written as one VEVENT each. Timed events use floating local
DATE-TIME values, matching the store's wall-clock times; all-day events
use DATE values with the exclusive end date RFC 5545 expects. Each
reminder offset becomes a DISPLAY alarm.
"""

from datetime import datetime, date, time, timedelta
from pathlib import Path
from typing import Iterable, Optional

from icalendar import Calendar as ICalCalendar, Event as ICalEvent, Alarm

from .debug import debug_print
from .event import Event, parse_datetime, parse_input, validate_fields
from .timezone_utils import local_naive_to_utc


PRODID = '-//Daybook//Daybook Calendar//'


def _debug_print(message: str) -> None:
    debug_print("ICAL", message)


def event_to_vevent(event: Event) -> ICalEvent:
    """Build an icalendar VEVENT from an Event."""
    vevent = ICalEvent()
    vevent.add('uid', event.id)
    vevent.add('summary', event.title)
    vevent.add('dtstamp', local_naive_to_utc(event.updated_at))
    vevent.add('created', local_naive_to_utc(event.created_at))
    vevent.add('last-modified', local_naive_to_utc(event.updated_at))

    if event.description:
        vevent.add('description', event.description)
    if event.location:
        vevent.add('location', event.location)

    if event.is_all_day:
        vevent.add('dtstart', event.start_date)
        vevent.add('dtend', event.start_date + timedelta(days=1))
    else:
        vevent.add('dtstart', event.start_time)
        vevent.add('dtend', event.end_time)

    for minutes in event.reminder_minutes:
        alarm = Alarm()
        alarm.add('action', 'DISPLAY')
        alarm.add('description', event.title)
        alarm.add('trigger', timedelta(minutes=-minutes))
        vevent.add_component(alarm)

    return vevent


def events_to_ical(events: Iterable[Event]) -> str:
    """Serialize events into VCALENDAR text, ordered by start time."""
    vcal = ICalCalendar()
    vcal.add('prodid', PRODID)
    vcal.add('version', '2.0')
    for event in sorted(events, key=lambda e: e.start_time):
        vcal.add_component(event_to_vevent(event))
    return vcal.to_ical().decode('utf-8')


def _reminder_minutes(vevent, start: datetime, end: datetime) -> list[int]:
    minutes = []
    for alarm in vevent.walk('VALARM'):
        trigger = alarm.get('TRIGGER')
        if trigger is None:
            continue
        value = trigger.dt
        if isinstance(value, timedelta):
            related_end = str(trigger.params.get('RELATED', 'START')).upper() == 'END'
            offset = start - ((end if related_end else start) + value)
        elif isinstance(value, datetime):
            offset = start - parse_datetime(value, "reminder_minutes")
        else:
            continue
        if offset >= timedelta(0):
            minutes.append(int(offset.total_seconds() // 60))
    return sorted(set(minutes))


def vevent_to_input(vevent) -> Optional[dict]:
    """
    Convert a VEVENT into an EventStore input record.

    Returns None for components without DTSTART.
    """
    dtstart = vevent.get('DTSTART')
    if dtstart is None:
        return None

    start_value = dtstart.dt
    is_all_day = isinstance(start_value, date) and not isinstance(start_value, datetime)
    start = parse_datetime(start_value, "start_time")

    if is_all_day:
        # Stored as a single-day marker regardless of the DTEND span
        end = datetime.combine(start.date(), time(23, 59))
    else:
        dtend = vevent.get('DTEND')
        if dtend is not None:
            end = parse_datetime(dtend.dt, "end_time")
        elif vevent.get('DURATION') is not None:
            end = start + vevent.get('DURATION').dt
        else:
            end = start + timedelta(hours=1)

    summary = vevent.get('SUMMARY')
    description = vevent.get('DESCRIPTION')
    location = vevent.get('LOCATION')
    return {
        "title": str(summary) if summary else 'Untitled',
        "description": str(description) if description else None,
        "location": str(location) if location else None,
        "start_time": start,
        "end_time": end,
        "is_all_day": is_all_day,
        "reminder_minutes": _reminder_minutes(vevent, start, end),
    }


def ical_to_inputs(ical_text: str) -> list[dict]:
    """Parse VCALENDAR text into EventStore input records."""
    vcal = ICalCalendar.from_ical(ical_text)
    inputs = []
    for component in vcal.walk('VEVENT'):
        record = vevent_to_input(component)
        if record is None:
            _debug_print(f"Skipping VEVENT without DTSTART: {component.get('UID')}")
            continue
        inputs.append(record)
    return inputs


def write_ical_file(events: Iterable[Event], path: Path) -> int:
    """Write events to an .ics file. Returns the number of events written."""
    events = list(events)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(events_to_ical(events), encoding='utf-8')
    _debug_print(f"Exported {len(events)} events to {path}")
    return len(events)


def export_to_file(store, path: Path) -> int:
    """Write every event in ``store`` to ``path``."""
    return write_ical_file(store.list(), Path(path))


def import_from_file(store, path: Path) -> list[Event]:
    """
    Create an event in ``store`` for each VEVENT in ``path``.

    Imported events get new ids; the file's UIDs are not kept. All records
    are parsed and validated before the first one is created, so a file
    with a malformed or invalid VEVENT adds nothing.

    Raises:
        ValidationError: for the first VEVENT the store would reject
    """
    records = ical_to_inputs(Path(path).read_text(encoding='utf-8'))
    for record in records:
        validate_fields(parse_input(record))
    created = [store.create(record) for record in records]
    _debug_print(f"Imported {len(created)} events from {path}")
    return created
