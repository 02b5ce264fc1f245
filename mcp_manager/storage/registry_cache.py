"""Storage for cached registry listings and per-registry refresh metadata."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta

from mcp_manager.core.models import (
    ProviderSummary,
    RegistryMetadata,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from mcp_manager.storage.database import Database, write_guard


class RegistryCacheStore:
    """Rows of ``registry_cache`` and ``registry_metadata``.

    Entries are keyed by ``(registry_name, provider_id)``.  A refresh
    replaces every entry of one registry at once.
    """

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------
    def get_by_registry(self, registry_name: str) -> list[ProviderSummary]:
        rows = self.db.query(
            "SELECT payload_json FROM registry_cache WHERE registry_name = ? ORDER BY rowid",
            (registry_name,),
        )
        return [_row_to_summary(row) for row in rows]

    def get(self, registry_name: str, provider_id: str) -> ProviderSummary | None:
        row = self.db.query_one(
            "SELECT payload_json FROM registry_cache WHERE registry_name = ? AND provider_id = ?",
            (registry_name, provider_id),
        )
        return _row_to_summary(row) if row else None

    def count(self, registry_name: str) -> int:
        row = self.db.query_one(
            "SELECT COUNT(*) AS n FROM registry_cache WHERE registry_name = ?",
            (registry_name,),
        )
        return int(row["n"]) if row else 0

    def replace(
        self,
        registry_name: str,
        summaries: list[ProviderSummary],
        fetched_at: datetime | None = None,
    ) -> int:
        """Replace every cached entry of *registry_name* with *summaries*.

        Later duplicates of the same provider id win.

        Returns:
            Number of entries now cached for the registry
        """
        fetched = format_timestamp(fetched_at or utc_now())
        unique = {summary.id: summary for summary in summaries if summary.id}

        with write_guard(f"registry cache '{registry_name}'"), self.db.transaction() as conn:
            conn.execute("DELETE FROM registry_cache WHERE registry_name = ?", (registry_name,))
            conn.executemany(
                """
                INSERT INTO registry_cache (
                    registry_name, provider_id, name, payload_json, fetched_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        registry_name,
                        summary.id,
                        summary.name,
                        json.dumps(summary.to_dict()),
                        fetched,
                    )
                    for summary in unique.values()
                ],
            )
        return len(unique)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def get_metadata(self, registry_name: str) -> RegistryMetadata | None:
        row = self.db.query_one(
            "SELECT * FROM registry_metadata WHERE registry_name = ?",
            (registry_name,),
        )
        return _row_to_metadata(row) if row else None

    def list_metadata(self) -> list[RegistryMetadata]:
        rows = self.db.query("SELECT * FROM registry_metadata ORDER BY registry_name")
        return [_row_to_metadata(row) for row in rows]

    def record_refresh(
        self,
        registry_name: str,
        success: bool,
        error: str | None = None,
        when: datetime | None = None,
    ) -> RegistryMetadata:
        """Record the outcome of a refresh attempt.

        ``last_success_at`` only moves on success; ``cached_count`` always
        reflects what is actually cached afterwards.
        """
        now = when or utc_now()
        previous = self.get_metadata(registry_name)
        last_success = now if success else (previous.last_success_at if previous else None)
        cached = self.count(registry_name)

        with write_guard(f"registry metadata '{registry_name}'"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO registry_metadata (
                    registry_name, last_refresh_at, last_success_at,
                    last_refresh_successful, last_refresh_error, cached_count
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(registry_name) DO UPDATE SET
                    last_refresh_at = excluded.last_refresh_at,
                    last_success_at = excluded.last_success_at,
                    last_refresh_successful = excluded.last_refresh_successful,
                    last_refresh_error = excluded.last_refresh_error,
                    cached_count = excluded.cached_count
                """,
                (
                    registry_name,
                    format_timestamp(now),
                    format_timestamp(last_success),
                    int(success),
                    None if success else error,
                    cached,
                ),
            )

        return RegistryMetadata(
            registry_name=registry_name,
            last_refresh_at=now,
            last_success_at=last_success,
            last_refresh_successful=success,
            last_refresh_error=None if success else error,
            cached_count=cached,
        )

    def is_stale(self, registry_name: str, max_age: timedelta, now: datetime | None = None) -> bool:
        """Return True unless the last successful refresh is younger than *max_age*."""
        metadata = self.get_metadata(registry_name)
        if metadata is None or metadata.last_success_at is None:
            return True
        return (now or utc_now()) - metadata.last_success_at >= max_age

    def has_cache(self, registry_name: str) -> bool:
        """Return True if the registry has ever been cached successfully."""
        metadata = self.get_metadata(registry_name)
        return metadata is not None and metadata.last_success_at is not None


def _row_to_summary(row: sqlite3.Row) -> ProviderSummary:
    return ProviderSummary.from_dict(json.loads(str(row["payload_json"])))


def _row_to_metadata(row: sqlite3.Row) -> RegistryMetadata:
    return RegistryMetadata(
        registry_name=str(row["registry_name"]),
        last_refresh_at=parse_timestamp(row["last_refresh_at"]),
        last_success_at=parse_timestamp(row["last_success_at"]),
        last_refresh_successful=bool(row["last_refresh_successful"]),
        last_refresh_error=row["last_refresh_error"],
        cached_count=int(row["cached_count"]),
    )
