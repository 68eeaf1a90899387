"""Tests for (name, byte_size) duplicate detection."""
from fileintake.intake.dedup import DeduplicationIndex, dedup_key, is_duplicate
from fileintake.intake.schemas import RawFile


def _file(name, size):
    return RawFile(name=name, mime_type="image/png", content=b"\x00" * size)


class TestIsDuplicate:

    def test_same_name_and_size(self):
        assert is_duplicate(_file("a.png", 10), [_file("a.png", 10)])

    def test_same_name_different_size(self):
        assert not is_duplicate(_file("a.png", 10), [_file("a.png", 11)])

    def test_same_size_different_name(self):
        assert not is_duplicate(_file("a.png", 10), [_file("b.png", 10)])

    def test_empty_collection(self):
        assert not is_duplicate(_file("a.png", 10), [])

    def test_key(self):
        assert dedup_key(_file("a.png", 3)) == ("a.png", 3)


class TestDeduplicationIndex:

    def test_seeded_from_existing(self):
        index = DeduplicationIndex([_file("a.png", 10)])
        assert index.is_duplicate(_file("a.png", 10))
        assert not index.is_duplicate(_file("b.png", 10))

    def test_add_pending_catches_intra_batch_copy(self):
        index = DeduplicationIndex()
        first = _file("a.png", 10)
        assert not index.is_duplicate(first)
        index.add(first)
        assert index.is_duplicate(_file("a.png", 10))
        assert len(index) == 1
