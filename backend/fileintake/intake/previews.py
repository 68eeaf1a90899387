"""Preview handle lifecycle for image entries.

A preview is a revocable, zero-copy view over an image's bytes that the
owning view can render from without re-reading the upload. Acquiring one
yields two objects:

    - PreviewLease: the owner's side. Only a lease can be released, and
      releasing it calls ``memoryview.release()`` so the underlying buffer
      is no longer exported.
    - PreviewHandle: the read-only side (url, mime type, bytes) that is
      stored on FileEntry and handed to observers in snapshots.

The manager does not keep a registry of live leases. Whoever acquires a
lease owns it and must release it exactly once; in practice that is the
SelectionStore, which releases on remove, clear and close.
"""
import logging
import uuid
from typing import Optional

from .errors import PreviewReleasedError

logger = logging.getLogger(__name__)

PREVIEW_URL_SCHEME = "preview"


class PreviewLease:
    """Owner side of a preview: holds the view and can revoke it."""

    __slots__ = ("url", "mime_type", "handle", "_view")

    def __init__(self, content: bytes, mime_type: str):
        self.url = f"{PREVIEW_URL_SCHEME}:{uuid.uuid4()}"
        self.mime_type = mime_type
        self._view: Optional[memoryview] = memoryview(content)
        self.handle = PreviewHandle(self)

    @property
    def released(self) -> bool:
        return self._view is None

    def read(self) -> bytes:
        if self._view is None:
            raise PreviewReleasedError(f"Preview {self.url} has been released")
        return self._view.tobytes()

    def revoke(self) -> None:
        if self._view is None:
            raise PreviewReleasedError(f"Preview {self.url} was already released")
        self._view.release()
        self._view = None


class PreviewHandle:
    """Read-only reference to an image preview.

    Handles cannot be revoked; they report ``released`` once their lease
    has been.
    """

    __slots__ = ("_lease",)

    def __init__(self, lease: PreviewLease):
        self._lease = lease

    @property
    def url(self) -> str:
        return self._lease.url

    @property
    def mime_type(self) -> str:
        return self._lease.mime_type

    @property
    def released(self) -> bool:
        return self._lease.released

    def read(self) -> bytes:
        """Return the previewed bytes.

        Raises:
            PreviewReleasedError: If the preview has been revoked.
        """
        return self._lease.read()

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"PreviewHandle({self.url!r}, {state})"


class PreviewLifecycleManager:
    """Acquires and releases preview leases.

    Subclass this to observe acquire/release traffic; the store only
    depends on the two public methods.
    """

    def acquire(self, file) -> Optional[PreviewLease]:
        """Create a preview lease for an image file.

        Args:
            file: Anything with ``mime_type`` and ``content`` attributes
                (normally a RawFile).

        Returns:
            A live PreviewLease if the mime type starts with ``image/``,
            otherwise None.
        """
        if not file.mime_type.startswith("image/"):
            return None
        lease = PreviewLease(file.content, file.mime_type)
        logger.debug("[previews] Acquired %s for %s", lease.url, file.name)
        return lease

    def release(self, lease: PreviewLease) -> None:
        """Revoke a preview lease.

        Raises:
            TypeError: If given anything other than a lease from acquire(),
                such as the read-only handle on a FileEntry.
            PreviewReleasedError: If the lease was already released.
        """
        if not isinstance(lease, PreviewLease):
            raise TypeError(f"Only a PreviewLease can be released, got {type(lease).__name__}")
        lease.revoke()
        logger.debug("[previews] Released %s", lease.url)
