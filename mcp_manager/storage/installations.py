"""Installation store backed by the ``installations`` table."""

from __future__ import annotations

import json
import sqlite3
import uuid

from mcp_manager.core.errors import ConflictError, NotFoundError
from mcp_manager.core.models import Installation, format_timestamp, parse_timestamp, utc_now
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.database import Database, write_guard


class InstallationStore:
    """Records which providers are configured for which agents.

    The ``(provider_id, agent_id)`` pair is unique at the database level,
    so concurrent creators can never produce two rows for one pair.
    """

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_all(self) -> list[Installation]:
        rows = self.db.query("SELECT * FROM installations ORDER BY rowid")
        return [_row_to_installation(row) for row in rows]

    def list_by_provider(self, provider_id: str) -> list[Installation]:
        rows = self.db.query(
            "SELECT * FROM installations WHERE provider_id = ? ORDER BY rowid",
            (provider_id,),
        )
        return [_row_to_installation(row) for row in rows]

    def list_by_agent(self, agent_id: str) -> list[Installation]:
        rows = self.db.query(
            "SELECT * FROM installations WHERE agent_id = ? ORDER BY rowid",
            (agent_id,),
        )
        return [_row_to_installation(row) for row in rows]

    def get(self, installation_id: str) -> Installation | None:
        row = self.db.query_one("SELECT * FROM installations WHERE id = ?", (installation_id,))
        return _row_to_installation(row) if row else None

    def get_pair(self, provider_id: str, agent_id: str) -> Installation | None:
        row = self.db.query_one(
            "SELECT * FROM installations WHERE provider_id = ? AND agent_id = ?",
            (provider_id, agent_id),
        )
        return _row_to_installation(row) if row else None

    def list_orphans(self) -> list[Installation]:
        """Return installations whose provider is no longer in the catalog."""
        rows = self.db.query(
            """
            SELECT * FROM installations
            WHERE provider_id NOT IN (SELECT id FROM providers)
            ORDER BY rowid
            """
        )
        return [_row_to_installation(row) for row in rows]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def create(
        self,
        provider_id: str,
        agent_id: str,
        enabled: bool = True,
        config: dict[str, str] | None = None,
    ) -> Installation:
        """Create the installation ``(provider_id, agent_id)``.

        Raises:
            ConflictError: If the pair already exists
            NotFoundError: If the provider is not in the catalog
        """
        now = utc_now()
        installation = Installation(
            id=uuid.uuid4().hex,
            provider_id=provider_id,
            agent_id=agent_id,
            is_enabled=enabled,
            agent_specific_config=dict(config or {}),
            created_at=now,
            updated_at=now,
        )

        try:
            with write_guard(f"installation {provider_id}->{agent_id}"), self.db.transaction() as conn:
                # Guarded on the provider row so a concurrent uninstall
                # cannot leave a dangling installation behind
                cursor = conn.execute(
                    """
                    INSERT INTO installations (
                        id, provider_id, agent_id, is_enabled, config_json,
                        created_at, updated_at
                    )
                    SELECT ?, ?, ?, ?, ?, ?, ?
                    WHERE EXISTS (SELECT 1 FROM providers WHERE id = ?)
                    """,
                    (
                        installation.id,
                        provider_id,
                        agent_id,
                        int(enabled),
                        json.dumps(installation.agent_specific_config),
                        format_timestamp(now),
                        format_timestamp(now),
                        provider_id,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError("Installation", f"{provider_id}->{agent_id}") from e

        if cursor.rowcount == 0:
            raise NotFoundError("Provider", provider_id)

        message(
            f"Created installation {provider_id} -> {agent_id}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return installation

    def ensure(
        self,
        provider_id: str,
        agent_id: str,
        enabled: bool = True,
        config: dict[str, str] | None = None,
    ) -> tuple[Installation, bool]:
        """Create the installation unless it already exists.

        An existing row is returned untouched (no ``updated_at`` bump).

        Returns:
            Tuple of (installation, whether this call created it)

        Raises:
            NotFoundError: If the provider is not in the catalog
        """
        existing = self.get_pair(provider_id, agent_id)
        if existing is not None:
            return existing, False

        try:
            return self.create(provider_id, agent_id, enabled, config), True
        except ConflictError:
            stored = self.get_pair(provider_id, agent_id)
            if stored is None:
                raise
            return stored, False

    def set_enabled(self, installation_id: str, enabled: bool) -> bool:
        """Set the enabled flag.

        Returns:
            True if the installation exists
        """
        installation = self.get(installation_id)
        if installation is None:
            return False
        if installation.is_enabled == enabled:
            return True

        with write_guard(f"installation '{installation_id}'"), self.db.transaction() as conn:
            conn.execute(
                "UPDATE installations SET is_enabled = ?, updated_at = ? WHERE id = ?",
                (int(enabled), format_timestamp(utc_now()), installation_id),
            )
        return True

    def update_config(self, installation_id: str, config: dict[str, str]) -> bool:
        """Replace the agent-specific override.

        Returns:
            True if the installation exists
        """
        with write_guard(f"installation '{installation_id}'"), self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE installations SET config_json = ?, updated_at = ? WHERE id = ?",
                (json.dumps(dict(config)), format_timestamp(utc_now()), installation_id),
            )
        return cursor.rowcount > 0

    def remove(self, installation_id: str) -> bool:
        with write_guard(f"installation '{installation_id}'"), self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM installations WHERE id = ?", (installation_id,))
        return cursor.rowcount > 0

    def remove_pair(self, provider_id: str, agent_id: str) -> bool:
        with write_guard(f"installation {provider_id}->{agent_id}"), self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM installations WHERE provider_id = ? AND agent_id = ?",
                (provider_id, agent_id),
            )
        return cursor.rowcount > 0

    def __len__(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS n FROM installations")
        return int(row["n"]) if row else 0


def _row_to_installation(row: sqlite3.Row) -> Installation:
    return Installation(
        id=str(row["id"]),
        provider_id=str(row["provider_id"]),
        agent_id=str(row["agent_id"]),
        is_enabled=bool(row["is_enabled"]),
        agent_specific_config=json.loads(str(row["config_json"])),
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )
