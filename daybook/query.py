"""
Query engine for Daybook events.

Pure functions over sequences of Event objects. The store calls these with
its own collection and clock; list and agenda views may also call them
directly on an already-fetched list.

Two different notions of "is this event on day D" exist here and they
disagree at the boundaries:

- ``events_on_day`` (calendar cells, today's agenda) matches by endpoint:
  all-day events by start date, timed events by start date or end date.
- the ``today`` list filter is a true interval-overlap test against the
  whole of today.

Both are kept as they are; callers pick the one matching their view.
"""

import locale
from datetime import datetime, date, timedelta
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from .event import Event
from .timezone_utils import start_of_day, end_of_day, same_day, local_now


class TimeFilter(Enum):
    """Temporal filter of the event list."""
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"
    TODAY = "today"


class SortOrder(Enum):
    """Sort key of the event list."""
    START_TIME = "startTime"
    TITLE = "title"
    CREATED_AT = "createdAt"


class EventStatus(Enum):
    """Where an event stands relative to now."""
    PAST = "past"
    UPCOMING = "upcoming"
    ONGOING = "ongoing"


# ==================== Day Membership ====================

def is_on_day(event: Event, day: Union[date, datetime]) -> bool:
    """Day-membership predicate used by calendar cells."""
    if event.is_all_day:
        return same_day(event.start_time, day)
    return same_day(event.start_time, day) or same_day(event.end_time, day)


def events_on_day(events: Iterable[Event], day: Union[date, datetime]) -> list[Event]:
    """
    Events listed under a calendar day.

    A timed event spanning midnight shows on both its start and end day,
    but a longer span is not listed on the days strictly in between.
    """
    return [e for e in events if is_on_day(e, day)]


def events_in_range(events: Iterable[Event], range_start: datetime, range_end: datetime) -> list[Event]:
    """Events whose start time lies in [range_start, range_end]."""
    return [e for e in events if range_start <= e.start_time <= range_end]


def overlaps_day(event: Event, day: Union[date, datetime]) -> bool:
    """Interval-overlap predicate used by the ``today`` list filter."""
    day_start = start_of_day(day)
    day_end = end_of_day(day)
    return (
        (day_start <= event.start_time <= day_end)
        or (day_start <= event.end_time <= day_end)
        or (event.start_time <= day_start and event.end_time >= day_end)
    )


# ==================== Search / Filter / Sort ====================

def _matches(value: Optional[str], needle: str) -> bool:
    return needle in (value or "").casefold()


def search_events(events: Iterable[Event], query: str) -> list[Event]:
    """Case-insensitive substring search over title, description and location."""
    if not query:
        return list(events)
    needle = query.casefold()
    return [
        e for e in events
        if _matches(e.title, needle) or _matches(e.description, needle) or _matches(e.location, needle)
    ]


def filter_events(events: Iterable[Event], time_filter, now: datetime) -> list[Event]:
    """Apply one of the list view's temporal filters relative to ``now``."""
    time_filter = TimeFilter(time_filter)
    if time_filter is TimeFilter.UPCOMING:
        return [e for e in events if e.start_time > now]
    if time_filter is TimeFilter.PAST:
        return [e for e in events if e.end_time < now]
    if time_filter is TimeFilter.TODAY:
        return [e for e in events if overlaps_day(e, now)]
    return list(events)


def title_sort_key(title: str):
    """Collation key for titles; honours the process locale (LC_COLLATE)."""
    return (locale.strxfrm(title.casefold()), title)


def sort_events(events: Iterable[Event], order=SortOrder.START_TIME) -> list[Event]:
    """Sort a copy of ``events``; equal keys keep their relative order."""
    order = SortOrder(order)
    if order is SortOrder.TITLE:
        return sorted(events, key=lambda e: title_sort_key(e.title))
    if order is SortOrder.CREATED_AT:
        return sorted(events, key=lambda e: e.created_at, reverse=True)
    return sorted(events, key=lambda e: e.start_time)


def search_and_filter(
    events: Iterable[Event],
    query: str = "",
    time_filter=TimeFilter.ALL,
    order=SortOrder.START_TIME,
    now: Optional[datetime] = None,
) -> list[Event]:
    """
    Search, then filter by time, then sort.

    Args:
        events: Events to select from (not modified)
        query: Search text; empty means no search
        time_filter: A TimeFilter or its string value
        order: A SortOrder or its string value
        now: Reference time for the temporal filter (defaults to local_now())
    """
    if now is None:
        now = local_now()
    selected = search_events(events, query)
    selected = filter_events(selected, time_filter, now)
    return sort_events(selected, order)


def event_status(event: Event, now: datetime) -> EventStatus:
    if event.end_time < now:
        return EventStatus.PAST
    if event.start_time > now:
        return EventStatus.UPCOMING
    return EventStatus.ONGOING


def agenda_order(events: Iterable[Event]) -> list[Event]:
    """Order for today's agenda: all-day events first, then by start time."""
    return sorted(events, key=lambda e: (not e.is_all_day, e.start_time))


# ==================== Month View ====================

def month_grid(anchor: Union[date, datetime], week_starts_on: int = 1) -> list[list[date]]:
    """
    Days displayed by a month view, as full weeks.

    Args:
        anchor: Any day in the month to display
        week_starts_on: 0 for Sunday, 1 for Monday

    Returns:
        List of weeks, each a list of seven dates, covering the weeks that
        contain the first and last day of the month.
    """
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    first = anchor.replace(day=1)
    last = first_of_next_month(first) - timedelta(days=1)

    # date.weekday() is Monday=0; week_starts_on counts from Sunday=0
    lead = ((first.weekday() + 1) % 7 - week_starts_on) % 7
    grid_start = first - timedelta(days=lead)
    trail = (week_starts_on + 6 - (last.weekday() + 1) % 7) % 7
    grid_end = last + timedelta(days=trail)

    weeks = []
    day = grid_start
    while day <= grid_end:
        weeks.append([day + timedelta(days=i) for i in range(7)])
        day += timedelta(days=7)
    return weeks


def first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def day_cell_preview(events: Sequence[Event], limit: int = 3) -> tuple[list[Event], int]:
    """First ``limit`` events of a day cell and the number left out."""
    shown = list(events[:limit])
    return shown, max(0, len(events) - limit)
