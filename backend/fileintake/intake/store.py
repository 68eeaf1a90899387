"""SelectionStore: the authoritative, ordered file selection of one client.

The store is the single mutator of the selection. It composes validation,
duplicate detection and preview lifecycle, and guarantees at all times:

    - entry IDs are unique
    - no two entries share (name, byte_size)
    - the entry count never exceeds ``config.max_files``
    - an entry has a preview handle iff its mime type is ``image/*``
    - every acquired preview handle is released exactly once, when its
      entry is removed, the store is cleared, or the store is closed

Observers receive an immutable snapshot through ``on_files_change`` after
every mutation that changed something.

Thread Safety:
    Designed for a single event loop. Every operation runs to completion
    without awaiting; the store is NOT thread-safe.
"""
import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .dedup import DeduplicationIndex
from .errors import IntakeError, StoreClosedError
from .previews import PreviewLease, PreviewLifecycleManager
from .schemas import (
    BatchResult,
    FileEntry,
    FileStatus,
    IntakeConfig,
    RawFile,
    Rejection,
    RejectionReason,
    get_file_kind,
)
from .validation import validate_file

logger = logging.getLogger(__name__)

FilesChangeCallback = Callable[[Tuple[FileEntry, ...]], None]

# Draws from id_factory before giving up on finding an unused ID.
MAX_ID_ATTEMPTS = 100


class SelectionStore:
    """Ordered collection of accepted files.

    Args:
        config: Limits for this selection. Defaults to IntakeConfig().
        on_files_change: Called with the full snapshot after each mutation.
        previews: Preview lifecycle manager; a default one is created if omitted.
        id_factory: Produces entry IDs. Defaults to uuid4 strings.
    """

    def __init__(
        self,
        config: Optional[IntakeConfig] = None,
        on_files_change: Optional[FilesChangeCallback] = None,
        previews: Optional[PreviewLifecycleManager] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._config = config or IntakeConfig()
        self._on_files_change = on_files_change
        self._previews = previews or PreviewLifecycleManager()
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._entries: List[FileEntry] = []
        # Entry ID -> lease. Entries only carry the read-only handle.
        self._leases: Dict[str, PreviewLease] = {}
        self._closed = False

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    @property
    def config(self) -> IntakeConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> Tuple[FileEntry, ...]:
        """Current entries in insertion order, as an immutable tuple."""
        return tuple(self._entries)

    def get(self, entry_id: str) -> Optional[FileEntry]:
        index = self._index_of(entry_id)
        return self._entries[index] if index is not None else None

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def add_batch(self, raw_files: Iterable[RawFile]) -> BatchResult:
        """Validate, deduplicate and append a batch of files.

        If the batch would push the store past ``max_files`` the whole batch
        is rejected with a single CAPACITY_EXCEEDED rejection and nothing
        changes. Otherwise files are processed in input order; a file that
        fails validation or duplicates an existing (or earlier in-batch)
        entry is skipped without affecting the rest.

        Args:
            raw_files: Files in the order the user selected or dropped them.

        Returns:
            BatchResult with the accepted entries and the rejections.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        if self._closed:
            raise StoreClosedError("Cannot add files to a closed selection")

        files = list(raw_files)
        if not files:
            return BatchResult()

        if len(self._entries) + len(files) > self._config.max_files:
            logger.info(
                "[intake] Rejected batch of %d: would exceed %d files (holding %d)",
                len(files), self._config.max_files, len(self._entries),
            )
            rejection = Rejection(
                name=", ".join(f.name for f in files),
                reason=RejectionReason.CAPACITY_EXCEEDED,
            )
            return BatchResult(rejected=(rejection,))

        index = DeduplicationIndex(self._entries)
        accepted: List[FileEntry] = []
        rejected: List[Rejection] = []

        for file in files:
            reason = validate_file(file, self._config)
            if reason is not None:
                rejected.append(Rejection(name=file.name, reason=reason))
                continue

            if index.is_duplicate(file):
                rejected.append(Rejection(name=file.name, reason=RejectionReason.DUPLICATE_FILE))
                continue

            entry = self._build_entry(file)
            # Appended immediately so the store owns the preview even if a
            # later file in the batch raises.
            self._entries.append(entry)
            index.add(entry)
            accepted.append(entry)

        logger.info(
            "[intake] Batch of %d: accepted %d, rejected %d (now %d/%d)",
            len(files), len(accepted), len(rejected),
            len(self._entries), self._config.max_files,
        )
        if accepted:
            self._notify()
        return BatchResult(accepted=tuple(accepted), rejected=tuple(rejected))

    def remove(self, entry_id: str) -> bool:
        """Remove one entry and release its preview.

        Returns:
            True if the entry existed, False (and no change) otherwise.
        """
        index = self._index_of(entry_id)
        if index is None:
            logger.debug("[intake] remove(%s): no such entry", entry_id)
            return False

        entry = self._entries.pop(index)
        lease = self._leases.pop(entry.id, None)
        try:
            if lease is not None:
                self._previews.release(lease)
        finally:
            logger.info("[intake] Removed %s (%s)", entry.name, entry.id)
            self._notify()
        return True

    def clear(self) -> int:
        """Release every preview and empty the store.

        Returns:
            Number of entries dropped. Zero means nothing happened: no
            releases and no change notification.
        """
        if not self._entries:
            return 0
        dropped = len(self._entries)
        try:
            self._release_all()
        finally:
            logger.info("[intake] Cleared %d files", dropped)
            self._notify()
        return dropped

    def set_status(self, entry_id: str, status: FileStatus) -> Optional[FileEntry]:
        """Record an upload-workflow status change for one entry.

        The entry keeps its position, ID and preview handle.

        Returns:
            The updated entry, or None if no entry has that ID.

        Raises:
            StoreClosedError: If the store has been closed.
        """
        if self._closed:
            raise StoreClosedError("Cannot update a closed selection")

        index = self._index_of(entry_id)
        if index is None:
            return None

        status = FileStatus(status)
        entry = self._entries[index]
        if entry.status == status:
            return entry

        updated = entry.model_copy(update={"status": status})
        self._entries[index] = updated
        logger.info("[intake] %s status %s -> %s", entry.id, entry.status.value, status.value)
        self._notify()
        return updated

    def close(self) -> None:
        """Tear down the selection when its owning view goes away.

        Releases every preview without a change notification. Closing twice
        is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        dropped = len(self._entries)
        self._release_all()
        logger.debug("[intake] Closed store, released %d entries", dropped)

    def __enter__(self) -> "SelectionStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _index_of(self, entry_id: str) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        return None

    def _new_id(self) -> str:
        taken = {e.id for e in self._entries}
        for _ in range(MAX_ID_ATTEMPTS):
            entry_id = self._id_factory()
            if entry_id not in taken:
                return entry_id
        raise IntakeError(f"id_factory produced no unused ID in {MAX_ID_ATTEMPTS} attempts")

    def _build_entry(self, file: RawFile) -> FileEntry:
        """Build an entry and register its preview lease.

        The caller must append the returned entry before anything else can
        raise.
        """
        entry_id = self._new_id()
        lease = self._previews.acquire(file)
        try:
            entry = FileEntry(
                id=entry_id,
                name=file.name,
                byte_size=file.byte_size,
                mime_type=file.mime_type,
                kind=get_file_kind(file.mime_type),
                source_bytes=file.content,
                preview=lease.handle if lease is not None else None,
                status=FileStatus.READY,
            )
        except Exception:
            if lease is not None:
                self._previews.release(lease)
            raise
        if lease is not None:
            self._leases[entry_id] = lease
        return entry

    def _release_all(self) -> None:
        """Drop every entry and release every lease.

        A failing release does not stop the others; the first error is
        re-raised once all have been attempted.
        """
        self._entries = []
        leases, self._leases = self._leases, {}
        first_error: Optional[Exception] = None
        for entry_id, lease in leases.items():
            try:
                self._previews.release(lease)
            except Exception as e:
                logger.error("[intake] Failed to release preview of %s: %s", entry_id, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def _notify(self) -> None:
        if self._on_files_change is not None:
            self._on_files_change(self.snapshot())
