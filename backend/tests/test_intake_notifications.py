"""Tests for user-facing batch messages."""
import logging

import pytest

from fileintake.intake.notifications import (
    BufferedNotificationSink,
    IntakeNotifier,
    LoggingNotificationSink,
    rejection_message,
    success_message,
)
from fileintake.intake.schemas import BatchResult, IntakeConfig, Rejection, RejectionReason
from fileintake.intake.store import SelectionStore


@pytest.fixture
def config():
    return IntakeConfig(max_files=2, max_size=10 * 1024 * 1024, accepted_types=["image/*", ".pdf"])


class TestMessages:

    @pytest.mark.parametrize("reason,expected", [
        (RejectionReason.CAPACITY_EXCEEDED, "Maximum 2 files allowed"),
        (RejectionReason.TOO_LARGE, "File x.png is too large. Max size is 10.0MB"),
        (RejectionReason.INVALID_TYPE, "File x.png is not a valid type. Accepted types: image/*, .pdf"),
        (RejectionReason.DUPLICATE_FILE, "File x.png is already selected"),
    ])
    def test_rejection_text(self, config, reason, expected):
        assert rejection_message(Rejection(name="x.png", reason=reason), config) == expected

    def test_success_text(self):
        assert success_message(1) == "1 file added"
        assert success_message(3) == "3 files added"


class TestIntakeNotifier:

    def test_one_error_per_rejection_and_one_success(self, config, make_file):
        store = SelectionStore(config=config.model_copy(update={"max_files": 5}))
        result = store.add_batch([
            make_file("a.png"),
            make_file("a.png"),
            make_file("b.png", 2),
            make_file("c.zip", mime_type="application/zip"),
        ])
        sink = BufferedNotificationSink()

        IntakeNotifier(sink, store.config).announce(result)

        levels = [n.level for n in sink.drain()]
        assert levels.count("error") == len(result.rejected) == 2
        assert levels.count("success") == 1

    def test_capacity_gives_single_message(self, config, make_file):
        store = SelectionStore(config=config)
        result = store.add_batch([make_file("a"), make_file("b"), make_file("c")])
        sink = BufferedNotificationSink()

        IntakeNotifier(sink, config).announce(result)

        assert [n.message for n in sink.drain()] == ["Maximum 2 files allowed"]

    def test_nothing_to_announce(self, config):
        sink = BufferedNotificationSink()
        IntakeNotifier(sink, config).announce(BatchResult())
        assert sink.drain() == []

    def test_drain_empties_buffer(self, config):
        sink = BufferedNotificationSink()
        sink.error("boom")
        assert len(sink.drain()) == 1
        assert sink.drain() == []

    def test_logging_sink(self, caplog):
        with caplog.at_level(logging.INFO, logger="fileintake.intake.notifications"):
            LoggingNotificationSink().error("File x is already selected")
            LoggingNotificationSink().success("1 file added")
        assert "File x is already selected" in caplog.text
        assert "1 file added" in caplog.text
