"""Local persistent key-value cache backed by SQLite.

Each value is a JSON string stored under a string key. Reads and writes
complete within the call, so the cache never races with itself inside one
process.
"""

import logging
import sqlite3
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

# Document keys, one per top-level field
USERS_KEY = "streamguard_users"
TRACKS_KEY = "streamguard_playlist"
SPOTIFY_ID_KEY = "streamguard_spotify_id"
SCHEDULE_KEY = "streamguard_weekly_schedule"
ADMIN_PIN_KEY = "streamguard_admin_pin"

# Kept local only, never synced through the remote store
CLOUD_CONFIG_KEY = "streamguard_cloud_config"


class LocalCache:
    """String key-value storage in a single SQLite table."""

    def __init__(self, path: str | Path):
        """Open (or create) the cache.

        Args:
            path: SQLite database file, or ":memory:" for a throwaway cache.
        """
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self.path)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        self._conn.commit()
        logger.debug(f"Local cache opened at {self.path}")

    def get(self, key: str) -> str | None:
        """Get the raw value for a key, or None if unset."""
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Store a raw value."""
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store several values in one transaction."""
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                list(values.items()),
            )

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        with self._conn:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        """List stored keys."""
        return [row[0] for row in self._conn.execute("SELECT key FROM kv ORDER BY key")]

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "LocalCache":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
