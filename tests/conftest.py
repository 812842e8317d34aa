"""Pytest fixtures for storage and API tests."""

import tempfile
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from rootsy.config import get_settings
from rootsy.core.record_store import RecordStore
from rootsy.core.session_coordinator import SessionCoordinator
from rootsy.models.logs import Log


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for database files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Database path inside a directory that does not exist yet."""
    return temp_dir / "storage" / "rootsy.db"


@pytest_asyncio.fixture
async def store(db_path: Path) -> AsyncIterator[RecordStore]:
    """Provide an initialized record store backed by a fresh SQLite file."""
    record_store = RecordStore(db_path)
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest_asyncio.fixture
async def coordinator(store: RecordStore) -> AsyncIterator[SessionCoordinator]:
    """Provide a session coordinator over the test store."""
    yield SessionCoordinator(store)


@pytest.fixture
def client(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Run the app against a database in the temp directory."""
    monkeypatch.setenv("STORAGE_DIR", str(temp_dir / "api"))
    get_settings.cache_clear()

    from rootsy.main import app

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


def make_log(
    log_id: str,
    session_id: str,
    timestamp: int,
    content: str = "Error in service A",
    service: str | None = "ServiceA",
    level: str | None = "error",
) -> Log:
    """Build a log record for a session."""
    return Log(
        id=log_id,
        session_id=session_id,
        log_content=content,
        timestamp=timestamp,
        service=service,
        log_level=level,
    )
