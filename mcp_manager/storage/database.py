"""SQLite connection and schema management."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from mcp_manager.core.errors import WriteFailureError
from mcp_manager.output import MessageType, VerbosityLevel, message

# Special database path selecting a process-lifetime, in-memory store
MEMORY_DATABASE = ":memory:"

SCHEMA_VERSION = 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS providers (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        version TEXT NOT NULL DEFAULT '',
        author TEXT NOT NULL DEFAULT '',
        source_url TEXT NOT NULL DEFAULT '',
        invocation_spec TEXT NOT NULL DEFAULT '',
        tags_json TEXT NOT NULL DEFAULT '[]',
        global_config_json TEXT NOT NULL DEFAULT '{}',
        installed_at TEXT NOT NULL,
        updated_at TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_providers_name
    ON providers(name COLLATE NOCASE)
    """,
    """
    CREATE TABLE IF NOT EXISTS installations (
        id TEXT PRIMARY KEY,
        provider_id TEXT NOT NULL REFERENCES providers(id) ON DELETE CASCADE,
        agent_id TEXT NOT NULL,
        is_enabled INTEGER NOT NULL DEFAULT 1,
        config_json TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_installations_pair
    ON installations(provider_id, agent_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_installations_agent
    ON installations(agent_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS registry_cache (
        registry_name TEXT NOT NULL,
        provider_id TEXT NOT NULL,
        name TEXT NOT NULL,
        payload_json TEXT NOT NULL,
        fetched_at TEXT NOT NULL,
        PRIMARY KEY (registry_name, provider_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS registry_metadata (
        registry_name TEXT PRIMARY KEY,
        last_refresh_at TEXT,
        last_success_at TEXT,
        last_refresh_successful INTEGER NOT NULL DEFAULT 0,
        last_refresh_error TEXT,
        cached_count INTEGER NOT NULL DEFAULT 0
    )
    """,
)


class Database:
    """A single SQLite connection shared by all stores.

    The connection is opened with ``check_same_thread=False`` so the
    background reconciler and on-demand calls can share it; every
    transaction holds a re-entrant lock for its whole duration.
    """

    def __init__(self, path: Path | str = MEMORY_DATABASE):
        self.path = path
        self._lock = threading.RLock()

        if self.is_memory:
            message(
                "Using in-memory database; state will not survive this process",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            target = MEMORY_DATABASE
        else:
            db_path = Path(path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)

        self._conn = sqlite3.connect(
            target, check_same_thread=False, timeout=30, isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        if not self.is_memory:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self.ensure_schema()

    @property
    def is_memory(self) -> bool:
        return str(self.path) == MEMORY_DATABASE

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        with self.transaction() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside one transaction.

        Commits on success, rolls back on any exception.  Nested use from
        the same thread joins the outer transaction.
        """
        with self._lock:
            if self._conn.in_transaction:
                yield self._conn
                return
            try:
                self._conn.execute("BEGIN")
                yield self._conn
                self._conn.execute("COMMIT")
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise

    def query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a read-only query and return all rows."""
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        """Run a read-only query and return the first row, if any."""
        with self._lock:
            return self._conn.execute(sql, params).fetchone()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __repr__(self) -> str:
        return f"Database(path={self.path!r})"


@contextmanager
def write_guard(target: str) -> Iterator[None]:
    """Translate SQLite failures that are not integrity conflicts.

    Integrity errors pass through untouched so callers can map them to
    "already exists"; every other database error becomes
    :class:`WriteFailureError` naming *target*.
    """
    try:
        yield
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as e:
        raise WriteFailureError(target, str(e)) from e
