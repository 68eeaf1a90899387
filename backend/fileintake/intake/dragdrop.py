"""Drag-and-drop and picker event handling.

The controller is a two-state machine (IDLE, DRAG_ACTIVE). Each event sets
the state implied by its type, last writer wins:

    dragenter, dragover -> DRAG_ACTIVE
    dragleave, drop     -> IDLE

Drops and picker changes forward their file list to
``SelectionStore.add_batch``. Every handled event has its default action
prevented so the client never navigates to a dropped file.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .notifications import IntakeNotifier
from .schemas import BatchResult, RawFile
from .store import SelectionStore

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAG_ACTIVE = "drag_active"


class EventType(str, Enum):
    DRAG_ENTER = "dragenter"
    DRAG_OVER = "dragover"
    DRAG_LEAVE = "dragleave"
    DROP = "drop"
    CHANGE = "change"  # file picker selection


_DRAG_STATES = {
    EventType.DRAG_ENTER: DragState.DRAG_ACTIVE,
    EventType.DRAG_OVER: DragState.DRAG_ACTIVE,
    EventType.DRAG_LEAVE: DragState.IDLE,
}


@dataclass
class IntakeEvent:
    """A drag, drop or picker event as seen by the controller.

    Attributes:
        type: Event type.
        files: Files carried by a drop or picker change; empty otherwise.
        default_prevented: Set once the platform default is suppressed.
        propagation_stopped: Set once the event must not bubble further.
    """
    type: EventType
    files: List[RawFile] = field(default_factory=list)
    default_prevented: bool = False
    propagation_stopped: bool = False

    def __post_init__(self) -> None:
        self.type = EventType(self.type)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class DragDropController:
    """Translates drag/drop and picker events into add_batch calls.

    Args:
        store: The selection the files are added to.
        notifier: Optional notifier told about every forwarded batch.
    """

    def __init__(self, store: SelectionStore, notifier: Optional[IntakeNotifier] = None):
        self._store = store
        self._notifier = notifier
        self._state = DragState.IDLE

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_drag_active(self) -> bool:
        return self._state == DragState.DRAG_ACTIVE

    def handle(self, event: IntakeEvent) -> Optional[BatchResult]:
        """Dispatch any supported event.

        Returns:
            The BatchResult if the event forwarded files, otherwise None.
        """
        if event.type == EventType.DROP:
            return self.handle_drop(event)
        if event.type == EventType.CHANGE:
            return self.handle_picker_change(event)
        return self.handle_drag(event)

    def handle_drag(self, event: IntakeEvent) -> None:
        """Handle dragenter, dragover or dragleave."""
        if event.type not in _DRAG_STATES:
            raise ValueError(f"Not a drag event: {event.type.value}")
        event.prevent_default()
        event.stop_propagation()
        self._state = _DRAG_STATES[event.type]
        return None

    def handle_drop(self, event: IntakeEvent) -> Optional[BatchResult]:
        """Handle a drop: go idle and forward the dropped files."""
        if event.type != EventType.DROP:
            raise ValueError(f"Not a drop event: {event.type.value}")
        event.prevent_default()
        event.stop_propagation()
        self._state = DragState.IDLE
        return self._forward(event.files)

    def handle_picker_change(self, event: IntakeEvent) -> Optional[BatchResult]:
        """Handle a file picker selection.

        With ``multiple`` disabled the picker can only yield one file, so
        anything beyond the first is ignored.
        """
        if event.type != EventType.CHANGE:
            raise ValueError(f"Not a picker change event: {event.type.value}")
        event.prevent_default()
        files = list(event.files)
        if not self._store.config.multiple and len(files) > 1:
            logger.debug("[intake] Single-file picker received %d files; keeping the first", len(files))
            files = files[:1]
        return self._forward(files)

    def _forward(self, files: List[RawFile]) -> Optional[BatchResult]:
        if not files:
            return None
        result = self._store.add_batch(files)
        if self._notifier is not None:
            self._notifier.announce(result)
        return result
