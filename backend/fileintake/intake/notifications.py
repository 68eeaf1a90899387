"""User-facing messages for add_batch results.

The notifier publishes exactly one error message per rejection and, when
anything was accepted, exactly one aggregate success message. Where the
messages go is up to the sink: the service buffers them per request and
returns them to the client, and every message is also logged.
"""
import logging
from typing import List, Protocol

from .schemas import BatchResult, IntakeConfig, Notification, Rejection, RejectionReason

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Anything that can show an error or success message to the user."""

    def error(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...


class LoggingNotificationSink:
    """Sink that only writes messages to the log."""

    def error(self, message: str) -> None:
        logger.warning("[notify] %s", message)

    def success(self, message: str) -> None:
        logger.info("[notify] %s", message)


class BufferedNotificationSink(LoggingNotificationSink):
    """Sink that logs and keeps messages until drained."""

    def __init__(self) -> None:
        self._pending: List[Notification] = []

    def error(self, message: str) -> None:
        super().error(message)
        self._pending.append(Notification(level="error", message=message))

    def success(self, message: str) -> None:
        super().success(message)
        self._pending.append(Notification(level="success", message=message))

    def drain(self) -> List[Notification]:
        pending, self._pending = self._pending, []
        return pending


def rejection_message(rejection: Rejection, config: IntakeConfig) -> str:
    """Text shown to the user for one rejection."""
    if rejection.reason == RejectionReason.CAPACITY_EXCEEDED:
        return f"Maximum {config.max_files} files allowed"
    if rejection.reason == RejectionReason.TOO_LARGE:
        return f"File {rejection.name} is too large. Max size is {config.max_size_mb}MB"
    if rejection.reason == RejectionReason.INVALID_TYPE:
        return (
            f"File {rejection.name} is not a valid type. "
            f"Accepted types: {', '.join(config.accepted_types)}"
        )
    return f"File {rejection.name} is already selected"


def success_message(accepted_count: int) -> str:
    noun = "file" if accepted_count == 1 else "files"
    return f"{accepted_count} {noun} added"


class IntakeNotifier:
    """Turns a BatchResult into messages on a NotificationSink."""

    def __init__(self, sink: NotificationSink, config: IntakeConfig):
        self._sink = sink
        self._config = config

    def announce(self, result: BatchResult) -> None:
        for rejection in result.rejected:
            self._sink.error(rejection_message(rejection, self._config))
        if result.accepted:
            self._sink.success(success_message(len(result.accepted)))
