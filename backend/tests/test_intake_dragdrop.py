"""Tests for the drag-and-drop / picker state machine."""
import pytest

from fileintake.intake.dragdrop import DragDropController, DragState, EventType, IntakeEvent
from fileintake.intake.notifications import BufferedNotificationSink, IntakeNotifier
from fileintake.intake.schemas import IntakeConfig, RejectionReason
from fileintake.intake.store import SelectionStore


@pytest.fixture
def store():
    return SelectionStore(config=IntakeConfig(max_files=3, accepted_types=["image/*", ".pdf"]))


@pytest.fixture
def controller(store):
    return DragDropController(store)


class TestDragStates:
    """Tests for state transitions and default suppression."""

    def test_initial_state_idle(self, controller):
        assert controller.state == DragState.IDLE
        assert not controller.is_drag_active

    @pytest.mark.parametrize("event_type", ["dragenter", "dragover"])
    def test_enter_and_over_activate(self, controller, event_type):
        event = IntakeEvent(type=event_type)
        assert controller.handle(event) is None
        assert controller.state == DragState.DRAG_ACTIVE
        assert event.default_prevented
        assert event.propagation_stopped

    def test_leave_deactivates(self, controller):
        controller.handle(IntakeEvent(type="dragenter"))
        event = IntakeEvent(type="dragleave")
        controller.handle(event)
        assert controller.state == DragState.IDLE
        assert event.default_prevented

    def test_last_writer_wins(self, controller):
        for t in ["dragenter", "dragleave", "dragover", "dragover", "dragleave", "dragenter"]:
            controller.handle(IntakeEvent(type=t))
        assert controller.state == DragState.DRAG_ACTIVE

    def test_leave_while_idle_stays_idle(self, controller):
        controller.handle(IntakeEvent(type="dragleave"))
        assert controller.state == DragState.IDLE

    def test_unknown_event_type(self):
        with pytest.raises(ValueError):
            IntakeEvent(type="dragexit")

    def test_handle_drag_rejects_drop(self, controller):
        with pytest.raises(ValueError):
            controller.handle_drag(IntakeEvent(type=EventType.DROP))


class TestDrop:
    """Tests for drop forwarding."""

    def test_drop_forwards_files_and_goes_idle(self, controller, store, make_file):
        controller.handle(IntakeEvent(type="dragenter"))
        event = IntakeEvent(type="drop", files=[make_file("a.png"), make_file("b.pdf", mime_type="application/pdf")])

        result = controller.handle(event)

        assert controller.state == DragState.IDLE
        assert event.default_prevented and event.propagation_stopped
        assert [e.name for e in result.accepted] == ["a.png", "b.pdf"]
        assert store.count == 2

    def test_empty_drop_forwards_nothing(self, controller, store):
        controller.handle(IntakeEvent(type="dragover"))
        event = IntakeEvent(type="drop")
        assert controller.handle(event) is None
        assert controller.state == DragState.IDLE
        assert event.default_prevented
        assert store.count == 0

    def test_drop_over_capacity(self, controller, store, make_file):
        files = [make_file(f"{i}.png", 100 + i) for i in range(4)]
        result = controller.handle(IntakeEvent(type="drop", files=files))
        assert result.rejected[0].reason == RejectionReason.CAPACITY_EXCEEDED
        assert store.count == 0

    def test_notifier_receives_result(self, store, make_file):
        sink = BufferedNotificationSink()
        controller = DragDropController(store, IntakeNotifier(sink, store.config))

        controller.handle(IntakeEvent(type="drop", files=[make_file("a.png"), make_file("x.zip", mime_type="application/zip")]))

        messages = [(n.level, n.message) for n in sink.drain()]
        assert messages == [
            ("error", "File x.zip is not a valid type. Accepted types: image/*, .pdf"),
            ("success", "1 file added"),
        ]


class TestPickerChange:
    """Tests for picker selections."""

    def test_forwards_selection(self, controller, store, make_file):
        event = IntakeEvent(type="change", files=[make_file("a.png"), make_file("b.png", 2)])
        result = controller.handle(event)
        assert event.default_prevented
        assert len(result.accepted) == 2
        assert controller.state == DragState.IDLE

    def test_single_file_picker_keeps_first(self, make_file):
        store = SelectionStore(config=IntakeConfig(multiple=False))
        controller = DragDropController(store)
        result = controller.handle_picker_change(
            IntakeEvent(type="change", files=[make_file("a.png"), make_file("b.png", 2)])
        )
        assert [e.name for e in result.accepted] == ["a.png"]

    def test_empty_selection(self, controller):
        assert controller.handle(IntakeEvent(type="change")) is None

    def test_rejects_non_change_event(self, controller):
        with pytest.raises(ValueError):
            controller.handle_picker_change(IntakeEvent(type="drop"))
