"""Shared fixtures for the mcp-manager test suite."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from mcp_manager.core.agents import AgentManager
from mcp_manager.plugins.agents import BUILTIN_CONNECTORS, ClaudeCodeConnector
from mcp_manager.storage import MEMORY_DATABASE, Database, InstallationStore, ProviderCatalog, RegistryCacheStore


class Clock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def db():
    database = Database(MEMORY_DATABASE)
    yield database
    database.close()


@pytest.fixture
def catalog(db):
    return ProviderCatalog(db)


@pytest.fixture
def installations(db):
    return InstallationStore(db)


@pytest.fixture
def cache_store(db):
    return RegistryCacheStore(db)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def home(tmp_path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def project(tmp_path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def claude_code(home, project):
    return ClaudeCodeConnector(home=home, cwd=project)


@pytest.fixture
def agent_manager(home, project):
    return AgentManager(connectors=[cls(home=home, cwd=project) for cls in BUILTIN_CONNECTORS])


@pytest.fixture
def drop_provider_row(db):
    """Delete a provider row but keep its installations, as a database created without foreign keys would."""

    def drop(provider_id: str) -> None:
        with db._lock:
            db._conn.execute("PRAGMA foreign_keys = OFF")
            try:
                db._conn.execute("DELETE FROM providers WHERE id = ?", (provider_id,))
            finally:
                db._conn.execute("PRAGMA foreign_keys = ON")

    return drop
