"""Pydantic schemas for the file intake module.

This module defines the data models for a client's file selection:
- IntakeConfig: Per-session limits (count cap, size ceiling, accepted types)
- RawFile: A file as delivered by the picker or a drop event
- FileEntry: One accepted file held by the SelectionStore
- Rejection / BatchResult: Outcome of an add_batch pass
- FileEntryView and the response models returned by the intake router

Entries are frozen. The store hands out tuples of them, so observers can
render a snapshot but never reach into the store's own list.
"""
import uuid
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .previews import PreviewHandle


# Defaults mirror the admin UI's upload widget
DEFAULT_MAX_FILES = 5
DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_ACCEPTED_TYPES = ["image/*", "application/pdf", ".doc", ".docx", ".txt"]


class FileKind(str, Enum):
    """Tag deciding how a file is rendered.

    - IMAGE: mime type starts with ``image/``; the entry carries a preview handle
    - DOCUMENT: everything else; rendered with a generic icon
    """
    IMAGE = "image"
    DOCUMENT = "document"


class FileStatus(str, Enum):
    """Upload state of an entry.

    The intake manager only ever sets READY. UPLOADING and ERROR are written
    by the upload workflow that consumes the selection.
    """
    READY = "ready"
    UPLOADING = "uploading"
    ERROR = "error"


class RejectionReason(str, Enum):
    """Why a file (or a whole batch) was not accepted."""
    CAPACITY_EXCEEDED = "capacity_exceeded"
    TOO_LARGE = "too_large"
    INVALID_TYPE = "invalid_type"
    DUPLICATE_FILE = "duplicate_file"


def get_file_kind(mime_type: str) -> FileKind:
    """Classify a mime type into a FileKind.

    Examples:
        >>> get_file_kind("image/png")
        <FileKind.IMAGE: 'image'>
        >>> get_file_kind("application/pdf")
        <FileKind.DOCUMENT: 'document'>
    """
    if mime_type.startswith("image/"):
        return FileKind.IMAGE
    return FileKind.DOCUMENT


def format_file_size(size_bytes: int) -> str:
    """Render a byte count for display, e.g. ``1.5 KB`` or ``0 Bytes``."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


class IntakeConfig(BaseModel):
    """Limits applied to one file selection."""
    max_files: int = Field(default=DEFAULT_MAX_FILES, ge=1, description="Hard cap on accepted entries")
    max_size: int = Field(default=DEFAULT_MAX_SIZE_BYTES, ge=1, description="Per-file size ceiling in bytes")
    accepted_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ACCEPTED_TYPES),
        description="Extension (.pdf), exact mime (application/pdf) or wildcard (image/*) patterns",
    )
    multiple: bool = Field(default=True, description="Whether the picker may select several files at once")

    @field_validator("accepted_types", mode="before")
    @classmethod
    def _split_patterns(cls, value):
        # YAML and HTML accept attributes both use "image/*, .pdf"
        if isinstance(value, str):
            value = value.split(",")
        return [p.strip() for p in value if p and p.strip()]

    @property
    def accept_attribute(self) -> str:
        """Value for an ``<input type="file" accept=...>`` attribute."""
        return ",".join(self.accepted_types)

    @property
    def max_size_mb(self) -> str:
        return f"{self.max_size / (1024 * 1024):.1f}"


class RawFile(BaseModel):
    """A file handed over by the picker or a drop event, before validation."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Original filename")
    mime_type: str = Field(default="", description="Browser-reported MIME type, empty if unknown")
    content: bytes = Field(default=b"", description="File content")

    @property
    def byte_size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lowercased last dot-separated segment, with a leading dot."""
        return "." + self.name.rsplit(".", 1)[-1].lower()


class FileEntry(BaseModel):
    """One accepted file in a selection.

    ``preview`` is set iff ``kind`` is IMAGE. It is a read-only handle; the
    store keeps the matching lease and releases it when the entry is
    removed, cleared or closed.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique entry ID")
    name: str = Field(..., description="Original filename")
    byte_size: int = Field(..., ge=0, description="File size in bytes")
    mime_type: str = Field(..., description="MIME type reported at selection time")
    kind: FileKind = Field(..., description="Image or document")
    source_bytes: bytes = Field(..., repr=False, description="Raw file content")
    preview: Optional[PreviewHandle] = Field(default=None, repr=False, description="Read-only preview handle")
    status: FileStatus = Field(default=FileStatus.READY, description="Upload state")

    @property
    def dedup_key(self) -> Tuple[str, int]:
        return (self.name, self.byte_size)


class Rejection(BaseModel):
    """A file (or, for capacity, a whole batch) that was turned away.

    For CAPACITY_EXCEEDED there is exactly one rejection per batch and
    ``name`` lists every file of the batch, comma separated.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    reason: RejectionReason


class BatchResult(BaseModel):
    """Outcome of one SelectionStore.add_batch pass."""
    model_config = ConfigDict(frozen=True)

    accepted: Tuple[FileEntry, ...] = ()
    rejected: Tuple[Rejection, ...] = ()


# ---------------------------------------------------------------------------
# API models
# ---------------------------------------------------------------------------


class FileEntryView(BaseModel):
    """Public view of a FileEntry. Never carries the file content."""
    id: str
    name: str
    byte_size: int
    size_label: str
    mime_type: str
    kind: FileKind
    status: FileStatus
    has_preview: bool

    @classmethod
    def from_entry(cls, entry: FileEntry) -> "FileEntryView":
        return cls(
            id=entry.id,
            name=entry.name,
            byte_size=entry.byte_size,
            size_label=format_file_size(entry.byte_size),
            mime_type=entry.mime_type,
            kind=entry.kind,
            status=entry.status,
            has_preview=entry.preview is not None,
        )


class Notification(BaseModel):
    """A user-facing message produced for a batch result."""
    level: str = Field(..., description="'error' or 'success'")
    message: str


class IntakeConfigOverrides(BaseModel):
    """Optional per-session replacements for the configured defaults."""
    max_files: Optional[int] = None
    max_size: Optional[int] = None
    accepted_types: Optional[List[str]] = None
    multiple: Optional[bool] = None


class DroppedFilePayload(BaseModel):
    """One file inside a WebSocket ``drop`` event; ``data`` is base64."""
    name: str
    type: str = ""
    data: str = ""


class SessionCreated(BaseModel):
    session_id: str
    config: IntakeConfig
    accept: str = Field(..., description="accept attribute for the file input")


class SelectionResponse(BaseModel):
    session_id: str
    files: List[FileEntryView]
    count: int
    max_files: int


class BatchResponse(SelectionResponse):
    accepted: List[FileEntryView]
    rejected: List[Rejection]
    notifications: List[Notification]


class StatusUpdate(BaseModel):
    status: FileStatus
