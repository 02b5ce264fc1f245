"""Provider catalog backed by the ``providers`` table."""

from __future__ import annotations

import json
import sqlite3

from mcp_manager.core.models import Provider, format_timestamp, parse_timestamp, utc_now
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.database import Database, write_guard


class ProviderCatalog:
    """Durable store of installed providers.

    Every lookup is an exact, case-sensitive match on ``id``.  Inserts are
    never upserts: a second insert of the same id fails and leaves the
    stored provider untouched.
    """

    def __init__(self, db: Database):
        self.db = db

    def list(self) -> list[Provider]:
        """Return all providers in insertion order."""
        rows = self.db.query("SELECT * FROM providers ORDER BY rowid")
        return [_row_to_provider(row) for row in rows]

    def get(self, provider_id: str) -> Provider | None:
        row = self.db.query_one("SELECT * FROM providers WHERE id = ?", (provider_id,))
        return _row_to_provider(row) if row else None

    def exists(self, provider_id: str) -> bool:
        row = self.db.query_one("SELECT 1 FROM providers WHERE id = ?", (provider_id,))
        return row is not None

    def find_by_name(self, name: str) -> list[Provider]:
        """Return providers whose name equals *name*, ignoring case.

        Only the reconciler's identity resolution and the duplicate scan
        use this; the catalog itself never resolves providers by name.
        """
        wanted = name.casefold()
        return [p for p in self.list() if p.name.casefold() == wanted]

    def insert(self, provider: Provider) -> bool:
        """Insert *provider*.

        Sets ``installed_at`` when it is missing.

        Returns:
            True if inserted, False if a provider with the same id exists
        """
        if provider.installed_at is None:
            provider.installed_at = utc_now()

        try:
            with write_guard(f"provider '{provider.id}'"), self.db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO providers (
                        id, name, description, version, author, source_url,
                        invocation_spec, tags_json, global_config_json, installed_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        provider.id,
                        provider.name,
                        provider.description,
                        provider.version,
                        provider.author,
                        provider.source_url,
                        provider.invocation_spec,
                        json.dumps(provider.tags),
                        json.dumps(provider.global_config),
                        format_timestamp(provider.installed_at),
                    ),
                )
        except sqlite3.IntegrityError:
            message(
                f"Provider '{provider.id}' already in catalog",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return False

        message(f"Inserted provider '{provider.id}'", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return True

    def insert_or_get(self, provider: Provider) -> tuple[Provider, bool]:
        """Insert *provider*, or return the stored one if the id is taken.

        The insert attempt itself is the existence check, so two callers
        racing on the same id both end up with the same stored record.

        Returns:
            Tuple of (stored provider, whether this call inserted it)
        """
        if self.insert(provider):
            return provider, True

        existing = self.get(provider.id)
        if existing is None:
            # Removed between the failed insert and the read-back
            return self.insert_or_get(provider)
        return existing, False

    def update(self, provider: Provider) -> bool:
        """Replace the stored fields of *provider* except ``installed_at``.

        Returns:
            True if the provider existed and was updated
        """
        with write_guard(f"provider '{provider.id}'"), self.db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE providers
                SET name = ?, description = ?, version = ?, author = ?,
                    source_url = ?, invocation_spec = ?, tags_json = ?,
                    global_config_json = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    provider.name,
                    provider.description,
                    provider.version,
                    provider.author,
                    provider.source_url,
                    provider.invocation_spec,
                    json.dumps(provider.tags),
                    json.dumps(provider.global_config),
                    format_timestamp(utc_now()),
                    provider.id,
                ),
            )
        return cursor.rowcount > 0

    def remove(self, provider_id: str) -> bool:
        """Remove a provider and every installation that references it.

        Returns:
            True if the provider existed
        """
        with write_guard(f"provider '{provider_id}'"), self.db.transaction() as conn:
            links = conn.execute(
                "DELETE FROM installations WHERE provider_id = ?", (provider_id,)
            ).rowcount
            removed = conn.execute(
                "DELETE FROM providers WHERE id = ?", (provider_id,)
            ).rowcount

        if removed and links:
            message(
                f"Removed {links} installation(s) of provider '{provider_id}'",
                MessageType.INFO,
                VerbosityLevel.VERBOSE,
            )
        return removed > 0

    def __len__(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS n FROM providers")
        return int(row["n"]) if row else 0


def _row_to_provider(row: sqlite3.Row) -> Provider:
    return Provider(
        id=str(row["id"]),
        name=str(row["name"]),
        description=str(row["description"]),
        version=str(row["version"]),
        author=str(row["author"]),
        source_url=str(row["source_url"]),
        invocation_spec=str(row["invocation_spec"]),
        tags=json.loads(str(row["tags_json"])),
        global_config=json.loads(str(row["global_config_json"])),
        installed_at=parse_timestamp(row["installed_at"]),
    )
