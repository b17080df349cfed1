"""
Exception types raised by the Daybook core.

Errors are raised synchronously from the operation that detected them.
The calling UI layer decides how to present them.
"""

from typing import Optional


class DaybookError(Exception):
    """Base class for all Daybook errors."""


class ValidationError(DaybookError):
    """Malformed or out-of-range event input, attributed to one field."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(DaybookError):
    """No event with the requested id exists."""

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


class InvalidTransitionError(DaybookError):
    """A modal operation was requested in a state that does not allow it."""

    def __init__(self, operation: str, state: Optional[str] = None):
        detail = f" while {state}" if state else ""
        super().__init__(f"Cannot {operation}{detail}")
        self.operation = operation
        self.state = state


class ConfigError(DaybookError):
    """Configuration file contains an invalid value."""
