"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient

from fileintake.intake.previews import PreviewLifecycleManager
from fileintake.intake.schemas import RawFile
from fileintake.intake.session import IntakeSessionRegistry
from fileintake.main import app

KB = 1024
MB = 1024 * 1024


class RecordingPreviews(PreviewLifecycleManager):
    """PreviewLifecycleManager that remembers every acquire and release.

    Both lists hold the read-only handles, so they compare directly with
    ``FileEntry.preview``.
    """

    def __init__(self):
        self.acquired = []
        self.released = []

    def acquire(self, file):
        lease = super().acquire(file)
        if lease is not None:
            self.acquired.append(lease.handle)
        return lease

    def release(self, lease):
        super().release(lease)
        self.released.append(lease.handle)


@pytest.fixture
def make_file():
    """Factory for RawFile objects with content of the requested size."""
    def _make(name: str, size: int = KB, mime_type: str = "image/png") -> RawFile:
        return RawFile(name=name, mime_type=mime_type, content=b"\x00" * size)
    return _make


@pytest.fixture
def previews():
    return RecordingPreviews()


@pytest.fixture(autouse=True)
def fresh_registry():
    """Each test starts with an empty session registry."""
    IntakeSessionRegistry.reset_instance()
    yield
    IntakeSessionRegistry.reset_instance()


@pytest.fixture
def api_client():
    """Provide a TestClient for the main FastAPI app."""
    return TestClient(app)
