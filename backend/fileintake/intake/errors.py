"""Exceptions raised by the intake module.

Per-file rejections (too large, wrong type, duplicate, over capacity) are not
exceptions; they come back as ``Rejection`` values from ``add_batch``. The
classes here cover lifecycle misuse and session lookups.
"""


class IntakeError(Exception):
    """Base class for all intake errors."""


class StoreClosedError(IntakeError):
    """A mutation was attempted on a store that has been closed."""


class PreviewReleasedError(IntakeError):
    """A preview handle was released twice or read after release."""


class SessionNotFoundError(IntakeError):
    """No live intake session exists with the requested ID."""

    def __init__(self, session_id: str):
        super().__init__(f"Intake session not found: {session_id}")
        self.session_id = session_id


class SessionLimitError(IntakeError):
    """The registry already holds the configured maximum number of sessions."""

    def __init__(self, max_sessions: int):
        super().__init__(f"Maximum of {max_sessions} intake sessions reached")
        self.max_sessions = max_sessions
