import pytest

from factories import NOW
from studylens.infrastructure.adapters.memory_store import InMemoryEventStore


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryEventStore()


@pytest.fixture
def studylens_env(tmp_path, monkeypatch):
    """Point configuration at a temp data dir with the file backend."""
    data_dir = tmp_path / "data"
    monkeypatch.setenv("STUDYLENS_BACKEND", "file")
    monkeypatch.setenv("STUDYLENS_DATA_DIR", str(data_dir))
    monkeypatch.setenv("STUDYLENS_TIMEZONE", "UTC")
    return data_dir
