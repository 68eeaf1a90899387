"""Intake sessions: one client's selection and everything that observes it.

An IntakeSession plays the owning view for a SelectionStore. It wires the
store to a DragDropController, buffers user-facing messages for the
request that caused them, and fans change notifications out to listeners
(e.g. an open WebSocket). Closing a session closes its store, which
releases every preview it still holds.

The registry keeps sessions in memory only; nothing survives a restart.
"""
import logging
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from .dragdrop import DragDropController
from .errors import SessionLimitError, SessionNotFoundError
from .notifications import BufferedNotificationSink, IntakeNotifier
from .previews import PreviewLifecycleManager
from .schemas import FileEntry, IntakeConfig
from .store import SelectionStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000

FilesListener = Callable[[Tuple[FileEntry, ...]], None]


class IntakeSession:
    """A client's selection plus its controller, notifier and listeners."""

    def __init__(
        self,
        session_id: str,
        config: IntakeConfig,
        previews: Optional[PreviewLifecycleManager] = None,
    ):
        self.session_id = session_id
        self.config = config
        self.revision = 0
        self._listeners: List[FilesListener] = []
        self.sink = BufferedNotificationSink()
        self.store = SelectionStore(
            config=config,
            on_files_change=self._on_files_change,
            previews=previews,
        )
        self.controller = DragDropController(self.store, IntakeNotifier(self.sink, config))

    def subscribe(self, listener: FilesListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._listeners.clear()
        self.store.close()

    def _on_files_change(self, snapshot: Tuple[FileEntry, ...]) -> None:
        self.revision += 1
        logger.debug(
            "[intake] Session %s revision %d: %d files",
            self.session_id, self.revision, len(snapshot),
        )
        for listener in list(self._listeners):
            listener(snapshot)


class IntakeSessionRegistry:
    """Singleton registry of live intake sessions."""

    _instance: Optional["IntakeSessionRegistry"] = None

    def __init__(
        self,
        default_config: Optional[IntakeConfig] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self.default_config = default_config or IntakeConfig()
        self.max_sessions = max_sessions
        self._sessions: Dict[str, IntakeSession] = {}

    @classmethod
    def get_instance(cls) -> "IntakeSessionRegistry":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_instance(cls, registry: "IntakeSessionRegistry") -> None:
        """Replace the singleton (used at startup with configured defaults)."""
        if cls._instance is not None and cls._instance is not registry:
            cls._instance.close_all()
        cls._instance = registry

    @classmethod
    def reset_instance(cls) -> None:
        """Close every session and drop the singleton (for testing and shutdown)."""
        if cls._instance is not None:
            cls._instance.close_all()
        cls._instance = None

    def create(self, overrides: Optional[dict] = None) -> IntakeSession:
        """Open a new session.

        Args:
            overrides: IntakeConfig fields that replace the registry defaults.

        Raises:
            SessionLimitError: If ``max_sessions`` sessions are already open.
            pydantic.ValidationError: If the overrides are invalid.
        """
        if len(self._sessions) >= self.max_sessions:
            raise SessionLimitError(self.max_sessions)

        config = self.default_config
        if overrides:
            config = IntakeConfig(**{**self.default_config.model_dump(), **overrides})

        session = IntakeSession(str(uuid.uuid4()), config)
        self._sessions[session.session_id] = session
        logger.info(
            "[intake] Opened session %s (max_files=%d, max_size=%d)",
            session.session_id, config.max_files, config.max_size,
        )
        return session

    def get(self, session_id: str) -> IntakeSession:
        """Look up a live session.

        Raises:
            SessionNotFoundError: If no such session is open.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> int:
        """Close a session and release its previews.

        Returns:
            The number of entries the session held when it was closed.

        Raises:
            SessionNotFoundError: If no such session is open.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        held = session.store.count
        session.close()
        logger.info("[intake] Closed session %s (%d files released)", session_id, held)
        return held

    def close_all(self) -> int:
        sessions, self._sessions = self._sessions, {}
        for session in sessions.values():
            session.close()
        return len(sessions)

    def __len__(self) -> int:
        return len(self._sessions)
