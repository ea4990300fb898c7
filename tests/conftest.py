import httpx
import pytest

from auth.storage import MemoryStorage
from client import create_client
from tests.helpers import FakeBackend, Recorder
from webtrace_client.env import ClientSettings


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings(tmp_path) -> ClientSettings:
    return ClientSettings(base_url="http://api.test", storage_dir=tmp_path)


@pytest.fixture
def navigator() -> Recorder:
    return Recorder()


@pytest.fixture
def notifier() -> Recorder:
    return Recorder()


@pytest.fixture
def location() -> dict:
    return {"current": "/application/monitor?appCode=demo#errors"}


@pytest.fixture
def make_client(backend, settings, navigator, notifier, location):
    def _make(**overrides):
        options = {
            "persistent_storage": MemoryStorage(),
            "session_storage": MemoryStorage(),
            "location_provider": lambda: location["current"],
            "navigator": navigator,
            "notifier": notifier,
            "transport": httpx.MockTransport(backend),
        }
        options.update(overrides)
        return create_client(settings, **options)

    return _make


