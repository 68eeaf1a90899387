"""Multi-file intake module.

Accepts batches of user-selected files (picker or drag-and-drop), validates
each against size and type rules, rejects duplicates of the current
selection, manages image preview handles and enforces the selection cap.

Components (leaves first):
    - validation: per-file size/type rules
    - dedup: (name, byte_size) duplicate detection
    - previews: preview handle acquire/release
    - store: SelectionStore, the single owner of the selection
    - dragdrop: drag/drop/picker event state machine
    - notifications: user-facing messages for batch results
    - session: per-client sessions and their registry
"""

from .dedup import DeduplicationIndex, dedup_key, is_duplicate
from .dragdrop import DragDropController, DragState, EventType, IntakeEvent
from .errors import (
    IntakeError,
    PreviewReleasedError,
    SessionLimitError,
    SessionNotFoundError,
    StoreClosedError,
)
from .notifications import BufferedNotificationSink, IntakeNotifier, LoggingNotificationSink
from .previews import PreviewHandle, PreviewLease, PreviewLifecycleManager
from .schemas import (
    BatchResult,
    FileEntry,
    FileKind,
    FileStatus,
    IntakeConfig,
    RawFile,
    Rejection,
    RejectionReason,
)
from .session import IntakeSession, IntakeSessionRegistry
from .store import SelectionStore
from .validation import validate_file

__all__ = [
    "BatchResult",
    "BufferedNotificationSink",
    "DeduplicationIndex",
    "DragDropController",
    "DragState",
    "EventType",
    "FileEntry",
    "FileKind",
    "FileStatus",
    "IntakeConfig",
    "IntakeError",
    "IntakeEvent",
    "IntakeNotifier",
    "IntakeSession",
    "IntakeSessionRegistry",
    "LoggingNotificationSink",
    "PreviewHandle",
    "PreviewLease",
    "PreviewLifecycleManager",
    "PreviewReleasedError",
    "RawFile",
    "Rejection",
    "RejectionReason",
    "SelectionStore",
    "SessionLimitError",
    "SessionNotFoundError",
    "StoreClosedError",
    "dedup_key",
    "is_duplicate",
    "validate_file",
]
