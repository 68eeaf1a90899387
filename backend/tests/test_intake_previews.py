"""Tests for preview lease acquire/release and read-only handles."""
import pytest

from fileintake.intake.errors import PreviewReleasedError
from fileintake.intake.previews import PreviewHandle, PreviewLease, PreviewLifecycleManager
from fileintake.intake.schemas import RawFile


@pytest.fixture
def manager():
    return PreviewLifecycleManager()


@pytest.fixture
def image():
    return RawFile(name="a.png", mime_type="image/png", content=b"PNGDATA")


class TestAcquire:

    def test_image_gets_lease(self, manager, image):
        lease = manager.acquire(image)
        assert isinstance(lease, PreviewLease)
        assert lease.url.startswith("preview:")
        assert lease.mime_type == "image/png"
        assert not lease.released

    def test_handle_mirrors_lease(self, manager, image):
        lease = manager.acquire(image)
        handle = lease.handle
        assert isinstance(handle, PreviewHandle)
        assert handle.url == lease.url
        assert handle.mime_type == "image/png"
        assert handle.read() == b"PNGDATA"
        assert not handle.released

    def test_document_gets_none(self, manager):
        assert manager.acquire(RawFile(name="a.pdf", mime_type="application/pdf", content=b"%PDF")) is None

    def test_empty_mime_gets_none(self, manager):
        assert manager.acquire(RawFile(name="a.png", mime_type="", content=b"x")) is None

    def test_leases_are_distinct(self, manager, image):
        assert manager.acquire(image).url != manager.acquire(image).url


class TestRelease:

    def test_release_revokes(self, manager, image):
        lease = manager.acquire(image)
        manager.release(lease)
        assert lease.released
        assert lease.handle.released
        with pytest.raises(PreviewReleasedError):
            lease.handle.read()

    def test_double_release_raises(self, manager, image):
        lease = manager.acquire(image)
        manager.release(lease)
        with pytest.raises(PreviewReleasedError):
            manager.release(lease)

    def test_handle_cannot_be_released(self, manager, image):
        lease = manager.acquire(image)
        with pytest.raises(TypeError):
            manager.release(lease.handle)
        assert not lease.released
        assert lease.handle.read() == b"PNGDATA"

    def test_handle_has_no_revoke(self, manager, image):
        handle = manager.acquire(image).handle
        assert not hasattr(handle, "revoke")
        with pytest.raises(AttributeError):
            handle.url = "preview:other"

    def test_repr_shows_state(self, manager, image):
        lease = manager.acquire(image)
        assert "live" in repr(lease.handle)
        manager.release(lease)
        assert "released" in repr(lease.handle)
