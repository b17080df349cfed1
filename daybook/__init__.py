"""
Daybook Calendar Core

This package provides the core functionality of the calendar:
- Event record and input validation (event.py)
- In-memory event store with subscriptions (event_store.py)
- Day/range queries, search, filter and sort (query.py)
- Modal coordinator for create/view/edit surfaces (modal.py)
- Configuration and runtime settings (config.py)
- iCalendar export/import (ical_export.py)
"""

from .config import Config, Settings
from .errors import DaybookError, ValidationError, NotFoundError, InvalidTransitionError, ConfigError
from .event import Event, REMINDER_OPTIONS, new_event_defaults, normalize_all_day
from .event_store import EventStore, ViewState, CalendarView
from .modal import ModalCoordinator, ModalState
from .query import TimeFilter, SortOrder, EventStatus

__all__ = [
    'Config',
    'Settings',
    'DaybookError',
    'ValidationError',
    'NotFoundError',
    'InvalidTransitionError',
    'ConfigError',
    'Event',
    'REMINDER_OPTIONS',
    'new_event_defaults',
    'normalize_all_day',
    'EventStore',
    'ViewState',
    'CalendarView',
    'ModalCoordinator',
    'ModalState',
    'TimeFilter',
    'SortOrder',
    'EventStatus',
]
