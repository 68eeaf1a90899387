"""Per-file validation rules.

Rules run in a fixed order and the first failure wins:

1. Size: ``byte_size > max_size`` -> TOO_LARGE
2. Type: no accepted pattern matches -> INVALID_TYPE

A file that is both oversized and of the wrong type is reported as
TOO_LARGE only.
"""
from typing import Optional

from .schemas import IntakeConfig, RawFile, RejectionReason


def matches_pattern(pattern: str, extension: str, mime_type: str) -> bool:
    """Check one accepted-types pattern against a file.

    Args:
        pattern: ``.ext``, ``type/*`` or an exact mime type.
        extension: The file's lowercased extension including the dot.
        mime_type: The file's mime type.

    Examples:
        >>> matches_pattern(".pdf", ".pdf", "")
        True
        >>> matches_pattern("image/*", ".png", "image/png")
        True
        >>> matches_pattern("application/pdf", ".pdf", "application/x-pdf")
        False
    """
    if pattern.startswith("."):
        return pattern == extension
    if "/*" in pattern:
        return mime_type.split("/", 1)[0] == pattern.split("/", 1)[0]
    return mime_type == pattern


def validate_file(file: RawFile, config: IntakeConfig) -> Optional[RejectionReason]:
    """Validate a file against the size and type rules.

    Returns:
        None if the file is acceptable, otherwise the first failing
        RejectionReason (TOO_LARGE or INVALID_TYPE).
    """
    if file.byte_size > config.max_size:
        return RejectionReason.TOO_LARGE

    extension = file.extension
    if not any(matches_pattern(p, extension, file.mime_type) for p in config.accepted_types):
        return RejectionReason.INVALID_TYPE

    return None
