"""Duplicate detection by (name, byte_size)."""
from typing import Iterable, Set, Tuple

DedupKey = Tuple[str, int]


def dedup_key(item) -> DedupKey:
    """Key of a RawFile or FileEntry: its name and size in bytes."""
    return (item.name, item.byte_size)


def is_duplicate(candidate, existing_and_pending: Iterable) -> bool:
    """True if any item in ``existing_and_pending`` has the candidate's key."""
    key = dedup_key(candidate)
    return any(dedup_key(item) == key for item in existing_and_pending)


class DeduplicationIndex:
    """Key set covering the current store plus files accepted earlier in a batch.

    Build one per add_batch pass from the store's entries and ``add`` each
    file as it is accepted, so a second copy within the same batch is caught.
    """

    def __init__(self, existing: Iterable = ()):
        self._keys: Set[DedupKey] = {dedup_key(item) for item in existing}

    def is_duplicate(self, candidate) -> bool:
        return dedup_key(candidate) in self._keys

    def add(self, item) -> None:
        self._keys.add(dedup_key(item))

    def __len__(self) -> int:
        return len(self._keys)
