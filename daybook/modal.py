"""
Modal coordinator: decides which event surface is open.

The coordinator keeps no state of its own. It reads and writes the modal
part of the store's ViewState, so every surface subscribed to the store
sees the same mode and selection.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from .debug import debug_print
from .errors import InvalidTransitionError
from .event import Event
from .event_store import EventStore


def _debug_print(message: str) -> None:
    debug_print("MODAL", message)


class ModalState(Enum):
    """Which event surface is currently shown."""
    CLOSED = "closed"
    VIEWING = "viewing"
    CREATING = "creating"
    EDITING = "editing"


class ModalCoordinator:
    """
    State machine over CLOSED, VIEWING(event), CREATING and EDITING(event).

    Every transition is allowed from every state. Re-entering the current
    state with the same event changes nothing and notifies no one.
    """

    def __init__(self, store: EventStore):
        self._store = store

    @property
    def state(self) -> ModalState:
        view = self._store.view_state
        if not view.is_modal_open:
            return ModalState.CLOSED
        if view.is_edit_mode:
            return ModalState.EDITING
        if view.selected_event_id is not None:
            return ModalState.VIEWING
        return ModalState.CREATING

    @property
    def selected_event(self) -> Optional[Event]:
        return self._store.selected_event

    @property
    def is_open(self) -> bool:
        return self._store.view_state.is_modal_open

    @property
    def is_edit_mode(self) -> bool:
        return self._store.view_state.is_edit_mode

    def open_for_create(self) -> None:
        self._store.set_modal_state(is_modal_open=True)
        _debug_print("Opened create form")

    def open_for_view(self, event: Event) -> None:
        self._store.set_modal_state(is_modal_open=True, selected_event_id=event.id)
        _debug_print(f"Viewing event {event.id}")

    def open_for_edit(self, event: Event) -> None:
        self._store.set_modal_state(is_modal_open=True, is_edit_mode=True, selected_event_id=event.id)
        _debug_print(f"Editing event {event.id}")

    def open(self, event: Optional[Event] = None) -> None:
        """Show an event's details, or the create form when no event is given."""
        if event is None:
            self.open_for_create()
        else:
            self.open_for_view(event)

    def close(self) -> None:
        self._store.set_modal_state(is_modal_open=False)

    def submit(self, data: Mapping[str, Any]) -> Event:
        """
        Save the open form through the store and close on success.

        In CREATING a new event is created; in EDITING ``data`` is merged
        onto the selected event. On a ValidationError the form stays open.

        Raises:
            InvalidTransitionError: if no form is open
        """
        state = self.state
        if state is ModalState.CREATING:
            event = self._store.create(data)
        elif state is ModalState.EDITING:
            event = self._store.update(self._store.view_state.selected_event_id, data)
        else:
            raise InvalidTransitionError("submit", state.value)
        self.close()
        return event

    def delete_selected(self) -> None:
        """Delete the event shown by the open surface and close it."""
        selected_id = self._store.view_state.selected_event_id
        if selected_id is None:
            raise InvalidTransitionError("delete", self.state.value)
        self._store.delete(selected_id)
        self.close()
