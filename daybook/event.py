"""
Event record and input validation.

An Event is the single entity of the Daybook core. Records are created and
mutated only through the EventStore; this module provides the dataclass,
the parsing of form-layer input (ISO-8601 local strings, camelCase keys)
and the field validation shared by create and update.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date, time, timedelta
from typing import Any, Mapping, Optional

from .errors import ValidationError
from .timezone_utils import to_local_naive


TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
LOCATION_MAX_LENGTH = 200

# Minutes-before-start choices offered by the event form
REMINDER_OPTIONS = (0, 15, 60, 1440, 10080)

DEFAULT_REMINDER_MINUTES = 15

# Format used by datetime-local form inputs
FORM_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

INPUT_FIELDS = (
    "title",
    "description",
    "start_time",
    "end_time",
    "location",
    "is_all_day",
    "reminder_minutes",
)

# Fields assigned by the store; callers may never set them
SERVER_FIELDS = ("id", "created_at", "updated_at")

_FIELD_ALIASES = {
    "startTime": "start_time",
    "endTime": "end_time",
    "isAllDay": "is_all_day",
    "reminderMinutes": "reminder_minutes",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


@dataclass
class Event:
    """
    A time-bound calendar entry.

    Times are naive local wall-clock datetimes. For all-day events the
    time of day is not meaningful; by convention they run 00:00-23:59 of
    their start date.
    """
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False
    reminder_minutes: list[int] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def start_date(self) -> date:
        return self.start_time.date()

    @property
    def end_date(self) -> date:
        return self.end_time.date()

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def reminder_times(self) -> list[datetime]:
        """Datetimes at which each reminder is due, earliest first."""
        return sorted(self.start_time - timedelta(minutes=m) for m in self.reminder_minutes)

    def input_fields(self) -> dict:
        """The caller-settable fields of this event, as parsed values."""
        return {
            "title": self.title,
            "description": self.description,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "location": self.location,
            "is_all_day": self.is_all_day,
            "reminder_minutes": list(self.reminder_minutes),
        }

    def to_input(self) -> dict:
        """
        Form-layer representation used to pre-fill an edit form.

        Times are rendered as datetime-local strings, missing text fields
        as empty strings.
        """
        return {
            "title": self.title,
            "description": self.description or "",
            "start_time": self.start_time.strftime(FORM_DATETIME_FORMAT),
            "end_time": self.end_time.strftime(FORM_DATETIME_FORMAT),
            "location": self.location or "",
            "is_all_day": self.is_all_day,
            "reminder_minutes": list(self.reminder_minutes),
        }

    def copy(self) -> 'Event':
        return replace(self, reminder_minutes=list(self.reminder_minutes))

    def __repr__(self):
        return f"Event(id={self.id!r}, title={self.title!r}, start_time={self.start_time})"


# ==================== Input Parsing ====================

def parse_datetime(value: Any, field_name: str) -> datetime:
    """
    Parse a form-layer time value into a naive local datetime.

    Accepts datetime objects, date objects (midnight) and ISO-8601 strings
    such as ``2024-12-20T10:00`` or ``2024-12-20``. Aware values are
    converted to local wall-clock time.
    """
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError(field_name, "is required")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(field_name, f"invalid date/time: {value!r}")
        return to_local_naive(parsed)
    raise ValidationError(field_name, f"expected a date/time, got {type(value).__name__}")


def _parse_text(value: Any, field_name: str, max_length: int, required: bool) -> Optional[str]:
    if value is None:
        if required:
            raise ValidationError(field_name, "is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(field_name, f"expected a string, got {type(value).__name__}")
    if required and not value.strip():
        raise ValidationError(field_name, "must not be empty")
    if len(value) > max_length:
        raise ValidationError(field_name, f"must be at most {max_length} characters")
    if not required and value == "":
        return None
    return value


def parse_reminder_minutes(value: Any) -> list[int]:
    """De-duplicate and sort reminder offsets, rejecting negative values."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not hasattr(value, '__iter__'):
        raise ValidationError("reminder_minutes", "expected a list of minutes")
    minutes = set()
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValidationError("reminder_minutes", f"not an integer: {item!r}")
        if item < 0:
            raise ValidationError("reminder_minutes", f"must not be negative: {item}")
        minutes.add(item)
    return sorted(minutes)


def _parse_field(name: str, value: Any) -> Any:
    if name == "title":
        return _parse_text(value, name, TITLE_MAX_LENGTH, required=True)
    if name == "description":
        return _parse_text(value, name, DESCRIPTION_MAX_LENGTH, required=False)
    if name == "location":
        return _parse_text(value, name, LOCATION_MAX_LENGTH, required=False)
    if name in ("start_time", "end_time"):
        if value is None:
            raise ValidationError(name, "is required")
        return parse_datetime(value, name)
    if name == "is_all_day":
        if not isinstance(value, bool):
            raise ValidationError(name, "expected true or false")
        return value
    if name == "reminder_minutes":
        return parse_reminder_minutes(value)
    raise ValidationError(name, "unknown field")


def parse_input(data: Mapping[str, Any], partial: bool = False) -> dict:
    """
    Normalize a form-layer record into parsed event fields.

    Args:
        data: Mapping with snake_case or camelCase field names
        partial: If True, only the fields present are parsed (update);
                 otherwise title, start_time and end_time are required.

    Returns:
        Dict of parsed values keyed by snake_case field name.

    Raises:
        ValidationError: naming the first offending field.
    """
    parsed = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in SERVER_FIELDS:
            raise ValidationError(name, "is assigned by the store and cannot be set")
        if name not in INPUT_FIELDS:
            raise ValidationError(name, "unknown field")
        parsed[name] = _parse_field(name, value)

    if not partial:
        for name in ("title", "start_time", "end_time"):
            if name not in parsed:
                raise ValidationError(name, "is required")
        parsed.setdefault("description", None)
        parsed.setdefault("location", None)
        parsed.setdefault("is_all_day", False)
        parsed.setdefault("reminder_minutes", [])
    return parsed


def validate_fields(fields: Mapping[str, Any]) -> None:
    """Check the cross-field invariant of a complete record."""
    if not fields["is_all_day"] and fields["start_time"] >= fields["end_time"]:
        raise ValidationError("end_time", "must be later than start_time")


def build_event(
    fields: Mapping[str, Any],
    event_id: str,
    created_at: datetime,
    updated_at: datetime,
) -> Event:
    """Construct an Event from already-parsed, complete fields."""
    validate_fields(fields)
    return Event(
        id=event_id,
        title=fields["title"],
        description=fields["description"],
        start_time=fields["start_time"],
        end_time=fields["end_time"],
        location=fields["location"],
        is_all_day=fields["is_all_day"],
        reminder_minutes=list(fields["reminder_minutes"]),
        created_at=created_at,
        updated_at=updated_at,
    )


# ==================== Form Helpers ====================

def new_event_defaults(now: datetime, default_reminder_minutes: int = DEFAULT_REMINDER_MINUTES) -> dict:
    """Initial values of the create form: a one-hour event starting now."""
    start = now.replace(second=0, microsecond=0)
    return {
        "title": "",
        "description": "",
        "start_time": start.strftime(FORM_DATETIME_FORMAT),
        "end_time": (start + timedelta(hours=1)).strftime(FORM_DATETIME_FORMAT),
        "location": "",
        "is_all_day": False,
        "reminder_minutes": [default_reminder_minutes],
    }


def normalize_all_day(data: Mapping[str, Any]) -> dict:
    """
    Stretch an all-day form record over its start date (00:00-23:59).

    The store never does this implicitly; the form calls it when the
    all-day box is ticked.
    """
    result = dict(data)
    start_key = "startTime" if "startTime" in data else "start_time"
    end_key = "endTime" if "endTime" in data else "end_time"
    day = parse_datetime(data.get(start_key), "start_time").date()
    result[start_key] = datetime.combine(day, time(0, 0)).strftime(FORM_DATETIME_FORMAT)
    result[end_key] = datetime.combine(day, time(23, 59)).strftime(FORM_DATETIME_FORMAT)
    return result
