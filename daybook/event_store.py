"""
Event store for Daybook.

Owns the event collection and the calendar's selection/view state.
All mutations are validated before they are applied and listeners are
notified synchronously once the change is complete.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, date, timedelta
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .debug import debug_print
from .errors import NotFoundError, ValidationError
from .event import Event, build_event, parse_input
from .timezone_utils import local_now
from . import query


def _debug_print(message: str) -> None:
    debug_print("STORE", message)


Listener = Callable[[], None]


class CalendarView:
    MONTH = "month"
    WEEK = "week"
    DAY = "day"

    ALL = (MONTH, WEEK, DAY)


@dataclass(frozen=True)
class ViewState:
    """
    Selection and view state shared by the calendar surfaces.

    ``selected_event_id`` refers to an event in the store; the event itself
    is looked up on demand so the selection never holds a stale copy.
    """
    current_date: date
    current_view: str = CalendarView.MONTH
    selected_event_id: Optional[str] = None
    is_modal_open: bool = False
    is_edit_mode: bool = False


class EventStore:
    """
    In-memory store of calendar events.

    Construct one per application and pass it to the surfaces that need it.
    ``clock`` supplies "now" as a naive local datetime; ``id_factory``
    supplies new event ids. Both are injectable for tests.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = local_now,
        id_factory: Optional[Callable[[], str]] = None,
        default_view: str = CalendarView.MONTH,
    ):
        self._clock = clock
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._default_view = default_view

        self._lock = threading.RLock()
        self._events: dict[str, Event] = {}
        # Every id ever handed out, so deleted ids are never reused
        self._issued_ids: set[str] = set()
        self._view = ViewState(current_date=self._clock().date(), current_view=default_view)
        self._listeners: list[Listener] = []

    # ==================== Subscriptions ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called after every change.

        Returns a function that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify_change(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()

    # ==================== Event Operations ====================

    def now(self) -> datetime:
        return self._clock()

    def _new_id(self) -> str:
        for _ in range(100):
            event_id = self._id_factory()
            if event_id not in self._issued_ids:
                self._issued_ids.add(event_id)
                return event_id
        raise RuntimeError("id factory keeps returning ids that are already in use")

    def create(self, data: Mapping[str, Any]) -> Event:
        """
        Validate ``data`` and add a new event.

        Raises:
            ValidationError: if a field is missing, malformed or out of range
        """
        fields = parse_input(data)
        with self._lock:
            now = self._clock()
            event = build_event(fields, event_id="", created_at=now, updated_at=now)
            event.id = self._new_id()
            self._events[event.id] = event
            result = event.copy()
        _debug_print(f"Created event {result.id} ({result.title!r})")
        self._notify_change()
        return result

    def update(self, event_id: str, partial: Mapping[str, Any]) -> Event:
        """
        Merge ``partial`` onto an existing event.

        The merged record is validated as a whole before anything changes.

        Raises:
            NotFoundError: if no event has ``event_id``
            ValidationError: if the merged event would be invalid
        """
        changes = parse_input(partial, partial=True)
        with self._lock:
            current = self._events.get(event_id)
            if current is None:
                raise NotFoundError(event_id)
            fields = current.input_fields()
            fields.update(changes)

            # updated_at must move forward even if the clock has not
            updated_at = max(self._clock(), current.updated_at + timedelta(microseconds=1))
            event = build_event(
                fields,
                event_id=current.id,
                created_at=current.created_at,
                updated_at=updated_at,
            )
            self._events[event_id] = event
            result = event.copy()
        _debug_print(f"Updated event {event_id}: {sorted(changes)}")
        self._notify_change()
        return result

    def delete(self, event_id: str) -> None:
        """Remove an event. Unknown ids are ignored."""
        with self._lock:
            removed = self._events.pop(event_id, None)
            if removed is None:
                _debug_print(f"Delete ignored, no event {event_id}")
                return
            if self._view.selected_event_id == event_id:
                # The surface showing this event has nothing left to show
                self._view = replace(
                    self._view,
                    selected_event_id=None,
                    is_modal_open=False,
                    is_edit_mode=False,
                )
        _debug_print(f"Deleted event {event_id}")
        self._notify_change()

    def get(self, event_id: str) -> Optional[Event]:
        with self._lock:
            event = self._events.get(event_id)
            return event.copy() if event else None

    def list(self) -> list[Event]:
        """All events, in no particular order."""
        with self._lock:
            return [e.copy() for e in self._events.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def reset(self) -> None:
        """Drop all events and selection state."""
        with self._lock:
            self._events.clear()
            self._view = ViewState(current_date=self._clock().date(), current_view=self._default_view)
        self._notify_change()

    def seed_sample_events(self) -> list[Event]:
        """Add the demo events shown on first start."""
        samples = [
            {
                "title": "團隊會議",
                "description": "討論項目進度和下週計劃",
                "start_time": datetime(2024, 12, 20, 10, 0),
                "end_time": datetime(2024, 12, 20, 11, 30),
                "location": "會議室A",
                "reminder_minutes": [15, 60],
            },
            {
                "title": "客戶拜訪",
                "description": "與重要客戶討論合作方案",
                "start_time": datetime(2024, 12, 22, 14, 0),
                "end_time": datetime(2024, 12, 22, 16, 0),
                "location": "客戶辦公室",
                "reminder_minutes": [60, 1440],
            },
            {
                "title": "年終聚餐",
                "description": "公司年終聚餐活動",
                "start_time": datetime(2024, 12, 25, 0, 0),
                "end_time": datetime(2024, 12, 25, 23, 59),
                "location": "餐廳",
                "is_all_day": True,
                "reminder_minutes": [1440],
            },
        ]
        return [self.create(sample) for sample in samples]

    # ==================== Queries ====================

    def events_on_day(self, day) -> list[Event]:
        return query.events_on_day(self.list(), day)

    def events_in_range(self, range_start: datetime, range_end: datetime) -> list[Event]:
        return query.events_in_range(self.list(), range_start, range_end)

    def today_events(self) -> list[Event]:
        return query.events_on_day(self.list(), self._clock())

    def search(
        self,
        text: str = "",
        time_filter=query.TimeFilter.ALL,
        order=query.SortOrder.START_TIME,
    ) -> list[Event]:
        """Search, filter and sort the collection for the event list view."""
        return query.search_and_filter(self.list(), text, time_filter, order, now=self._clock())

    def status_of(self, event: Event) -> query.EventStatus:
        return query.event_status(event, self._clock())

    # ==================== View State ====================

    @property
    def view_state(self) -> ViewState:
        with self._lock:
            return self._view

    @property
    def current_date(self) -> date:
        return self.view_state.current_date

    @property
    def selected_event(self) -> Optional[Event]:
        """The event targeted by the detail or edit surface, if any."""
        selected_id = self.view_state.selected_event_id
        return self.get(selected_id) if selected_id else None

    def _replace_view(self, **changes) -> bool:
        """Apply view changes; the caller holds the lock. True if anything changed."""
        new_view = replace(self._view, **changes)
        if new_view == self._view:
            return False
        self._view = new_view
        return True

    def _set_view(self, **changes) -> ViewState:
        with self._lock:
            changed = self._replace_view(**changes)
            new_view = self._view
        if changed:
            self._notify_change()
        return new_view

    def set_current_date(self, value) -> ViewState:
        if isinstance(value, datetime):
            value = value.date()
        return self._set_view(current_date=value)

    def set_current_view(self, view: str) -> ViewState:
        if view not in CalendarView.ALL:
            raise ValidationError("current_view", f"unknown view: {view!r}")
        return self._set_view(current_view=view)

    def go_to_previous_month(self) -> ViewState:
        """Anchor on the last day of the previous month."""
        first = self.current_date.replace(day=1)
        return self.set_current_date(first - timedelta(days=1))

    def go_to_next_month(self) -> ViewState:
        """Anchor on the first day of the next month."""
        return self.set_current_date(query.first_of_next_month(self.current_date))

    def go_to_today(self) -> ViewState:
        return self.set_current_date(self._clock().date())

    def set_modal_state(
        self,
        is_modal_open: bool,
        is_edit_mode: bool = False,
        selected_event_id: Optional[str] = None,
    ) -> ViewState:
        """
        Replace the modal part of the view state.

        Used by the ModalCoordinator. A closed modal never keeps a
        selection, and edit mode always needs one.
        """
        if not is_modal_open:
            is_edit_mode = False
            selected_event_id = None
        if is_edit_mode and selected_event_id is None:
            raise ValidationError("selected_event", "edit mode needs a selected event")
        # The existence check and the view change share one lock acquisition
        with self._lock:
            if selected_event_id is not None and selected_event_id not in self._events:
                raise NotFoundError(selected_event_id)
            changed = self._replace_view(
                is_modal_open=is_modal_open,
                is_edit_mode=is_edit_mode,
                selected_event_id=selected_event_id,
            )
            new_view = self._view
        if changed:
            self._notify_change()
        return new_view

    # ==================== Export ====================

    def export_in_background(
        self,
        path: Path,
        on_finished: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> str:
        """
        Write all events to an .ics file on the background worker.

        The snapshot is taken now; later changes are not part of the export.
        Returns the operation id.
        """
        from .ical_export import write_ical_file
        from .task_worker import get_task_worker

        snapshot = self.list()
        operation_id = f"export:{uuid.uuid4()}"
        get_task_worker().submit(
            operation_id,
            write_ical_file,
            snapshot,
            Path(path),
            on_finished=on_finished,
            on_error=on_error,
        )
        return operation_id
