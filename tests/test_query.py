from datetime import date, datetime, timedelta

import pytest

from conftest import NOW
from daybook.event import Event
from daybook.query import (
    EventStatus,
    SortOrder,
    TimeFilter,
    agenda_order,
    day_cell_preview,
    event_status,
    events_in_range,
    events_on_day,
    filter_events,
    month_grid,
    search_and_filter,
    search_events,
    sort_events,
)


def _event(event_id, start, end, title=None, all_day=False, created_at=NOW, **extra):
    return Event(
        id=event_id,
        title=title or event_id,
        start_time=start,
        end_time=end,
        is_all_day=all_day,
        created_at=created_at,
        updated_at=created_at,
        **extra,
    )


def test_overnight_event_is_on_both_days():
    overnight = _event("late", datetime(2024, 12, 20, 23, 0), datetime(2024, 12, 21, 1, 0))
    assert events_on_day([overnight], date(2024, 12, 20)) == [overnight]
    assert events_on_day([overnight], date(2024, 12, 21)) == [overnight]
    assert events_on_day([overnight], date(2024, 12, 19)) == []


def test_long_timed_event_skips_days_in_between():
    trip = _event("trip", datetime(2024, 12, 20, 9, 0), datetime(2024, 12, 23, 18, 0))
    assert events_on_day([trip], date(2024, 12, 20)) == [trip]
    assert events_on_day([trip], date(2024, 12, 21)) == []
    assert events_on_day([trip], date(2024, 12, 23)) == [trip]


def test_all_day_event_keyed_by_start_date_only():
    span = _event("conf", datetime(2024, 12, 25), datetime(2024, 12, 26, 23, 59), all_day=True)
    assert events_on_day([span], date(2024, 12, 25)) == [span]
    assert events_on_day([span], date(2024, 12, 26)) == []


def test_events_on_day_accepts_datetime():
    event = _event("a", datetime(2024, 12, 20, 10), datetime(2024, 12, 20, 11))
    assert events_on_day([event], datetime(2024, 12, 20, 23, 59)) == [event]


def test_events_in_range_filters_on_start_only():
    inside = _event("inside", datetime(2024, 12, 10, 9), datetime(2024, 12, 10, 10))
    on_edge = _event("edge", datetime(2024, 12, 31, 0), datetime(2024, 12, 31, 1))
    started_before = _event("before", datetime(2024, 11, 30, 23), datetime(2024, 12, 1, 2))
    result = events_in_range(
        [inside, on_edge, started_before],
        datetime(2024, 12, 1), datetime(2024, 12, 31),
    )
    assert result == [inside, on_edge]


@pytest.fixture
def abc():
    a = _event("A", NOW - timedelta(days=1, hours=2), NOW - timedelta(days=1, hours=1))
    b = _event("B", NOW + timedelta(hours=1), NOW + timedelta(hours=2))
    c = _event("C", NOW - timedelta(hours=1), NOW + timedelta(hours=1))
    return a, b, c


def test_filter_composition(abc):
    a, b, c = abc
    events = [a, b, c]
    assert search_and_filter(events, time_filter="upcoming", now=NOW) == [b]
    assert search_and_filter(events, time_filter="past", now=NOW) == [a]
    assert search_and_filter(events, time_filter="today", now=NOW) == [c, b]
    assert search_and_filter(events, time_filter=TimeFilter.ALL, now=NOW) == [a, c, b]


def test_today_filter_is_an_overlap_test():
    # Starts yesterday, ends tomorrow: overlaps today without touching it by endpoint
    long_event = _event("long", NOW - timedelta(days=1), NOW + timedelta(days=1))
    assert filter_events([long_event], TimeFilter.TODAY, NOW) == [long_event]
    assert events_on_day([long_event], NOW) == []


def test_today_filter_includes_event_ending_just_after_midnight():
    overnight = _event("overnight", datetime(2024, 12, 19, 22), datetime(2024, 12, 20, 0, 30))
    assert filter_events([overnight], "today", NOW) == [overnight]


def test_search_matches_location_only():
    visit = _event(
        "visit", NOW, NOW + timedelta(hours=1),
        title="Partner visit", location="客戶辦公室",
    )
    other = _event("other", NOW, NOW + timedelta(hours=1), title="Lunch")
    assert search_events([visit, other], "客戶") == [visit]


def test_search_is_case_insensitive_and_handles_missing_fields():
    event = _event("e", NOW, NOW + timedelta(hours=1), title="Budget Review", description=None)
    assert search_events([event], "budget") == [event]
    assert search_events([event], "REVIEW") == [event]
    assert search_events([event], "nothing") == []
    assert search_events([event], "") == [event]


def test_start_time_sort_is_stable():
    first = _event("first", NOW, NOW + timedelta(hours=1))
    second = _event("second", NOW, NOW + timedelta(hours=2))
    earlier = _event("earlier", NOW - timedelta(hours=1), NOW)
    assert sort_events([second, first, earlier]) == [earlier, second, first]


def test_title_sort_ignores_case():
    events = [
        _event("1", NOW, NOW + timedelta(hours=1), title="banana"),
        _event("2", NOW, NOW + timedelta(hours=1), title="Apple"),
        _event("3", NOW, NOW + timedelta(hours=1), title="cherry"),
    ]
    assert [e.title for e in sort_events(events, "title")] == ["Apple", "banana", "cherry"]


def test_created_at_sort_is_newest_first():
    old = _event("old", NOW, NOW + timedelta(hours=1), created_at=NOW - timedelta(days=2))
    new = _event("new", NOW, NOW + timedelta(hours=1), created_at=NOW)
    assert sort_events([old, new], SortOrder.CREATED_AT) == [new, old]


def test_unknown_filter_value_is_rejected():
    with pytest.raises(ValueError):
        filter_events([], "someday", NOW)


def test_event_status(abc):
    a, b, c = abc
    assert event_status(a, NOW) is EventStatus.PAST
    assert event_status(b, NOW) is EventStatus.UPCOMING
    assert event_status(c, NOW) is EventStatus.ONGOING


def test_agenda_puts_all_day_first():
    morning = _event("morning", datetime(2024, 12, 20, 8), datetime(2024, 12, 20, 9))
    holiday = _event("holiday", datetime(2024, 12, 20), datetime(2024, 12, 20, 23, 59), all_day=True)
    noon = _event("noon", datetime(2024, 12, 20, 12), datetime(2024, 12, 20, 13))
    assert agenda_order([noon, morning, holiday]) == [holiday, morning, noon]


def test_month_grid_monday_start():
    weeks = month_grid(date(2024, 12, 20), week_starts_on=1)
    assert len(weeks) == 6
    assert weeks[0][0] == date(2024, 11, 25)
    assert weeks[-1][-1] == date(2025, 1, 5)
    assert all(len(week) == 7 for week in weeks)


def test_month_grid_sunday_start():
    weeks = month_grid(date(2024, 12, 1), week_starts_on=0)
    assert weeks[0][0] == date(2024, 12, 1)
    assert weeks[-1][-1] == date(2025, 1, 4)
    assert len(weeks) == 5


def test_day_cell_preview():
    events = [_event(str(i), NOW, NOW + timedelta(hours=1)) for i in range(5)]
    shown, hidden = day_cell_preview(events)
    assert [e.id for e in shown] == ["0", "1", "2"]
    assert hidden == 2
    assert day_cell_preview(events[:2]) == (events[:2], 0)


def test_default_now_uses_configured_timezone(monkeypatch):
    import daybook.timezone_utils as timezone_utils

    # UTC+14, far ahead of whatever zone the host runs in
    monkeypatch.setattr(timezone_utils, "_local_timezone_name", "Pacific/Kiritimati")
    now = timezone_utils.local_now()
    finished = _event("finished", now - timedelta(hours=3), now - timedelta(hours=2))

    assert search_and_filter([finished], time_filter="past") == [finished]
    assert search_and_filter([finished], time_filter="upcoming") == []
