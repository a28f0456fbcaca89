"""SQLite storage for the VitalSim health data bank.

Opens the connection, applies numbered schema migrations and offers a
transaction helper for multi-statement writes.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# ---------------------------------------------------------------------------
# Migrations: version -> DDL script, applied in ascending order
# ---------------------------------------------------------------------------

_MIGRATIONS: dict[int, str] = {
    1: """
    CREATE TABLE IF NOT EXISTS readings (
        id               TEXT PRIMARY KEY,
        subject_id       TEXT NOT NULL,
        metric_kind      TEXT NOT NULL,
        primary_value    REAL NOT NULL,
        secondary_value  REAL,
        timestamp        TEXT NOT NULL,
        situation        TEXT,
        meal_context     TEXT NOT NULL DEFAULT 'none',
        source           TEXT NOT NULL,
        payload_enc      TEXT,  -- Fernet token: notes, pulse, hourly increment
        created_at       TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS alerts (
        id           TEXT PRIMARY KEY,
        subject_id   TEXT NOT NULL,
        alert_type   TEXT NOT NULL,
        metric_name  TEXT NOT NULL,
        value        TEXT NOT NULL,
        timestamp    TEXT NOT NULL,
        read         INTEGER NOT NULL DEFAULT 0,
        reading_id   TEXT,
        created_at   TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_readings_subject_metric_ts
        ON readings(subject_id, metric_kind, timestamp);
    CREATE INDEX IF NOT EXISTS idx_alerts_subject_read
        ON alerts(subject_id, read);
    """,
}

SCHEMA_VERSION = max(_MIGRATIONS)

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class DatabaseError(Exception):
    """Raised when the database is used before it is opened."""


class HealthDatabase:
    """Owns the SQLite connection of the health data bank.

    ``db_path`` may be a file path (``~`` is expanded and parent directories
    are created) or ``":memory:"`` for tests.

    Usage::

        with HealthDatabase("~/.vitalsim/health.db") as db:
            with db.transaction() as conn:
                conn.execute("DELETE FROM alerts WHERE read = 1")
    """

    def __init__(self, db_path: str = MEMORY) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError(f"Database {self._db_path} not initialized; call initialize() first")
        return self._conn

    def initialize(self) -> None:
        """Open the connection and apply pending migrations. Safe to call twice."""
        if self._conn is not None:
            return

        target = self._db_path
        if target != MEMORY:
            path = Path(target).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)

        # Sync tools may be served from worker threads
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if target != MEMORY:
            conn.execute("PRAGMA journal_mode=WAL")
        self._conn = conn

        applied = self._migrate()
        logger.info(
            "Health database ready: %s (schema v%d, %d migration(s) applied)",
            self._db_path,
            self.get_schema_version(),
            applied,
        )

    def _migrate(self) -> int:
        conn = self.connection
        conn.executescript(_VERSION_TABLE)
        current = self.get_schema_version()
        pending = sorted(v for v in _MIGRATIONS if v > current)
        for version in pending:
            conn.executescript(_MIGRATIONS[version])
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.commit()
            logger.debug("Applied schema migration v%d", version)
        return len(pending)

    def get_schema_version(self) -> int:
        (version,) = self.connection.execute(
            "SELECT COALESCE(MAX(version), 0) FROM schema_version"
        ).fetchone()
        return version

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back if the block raises."""
        conn = self.connection
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Health database closed: %s", self._db_path)

    def __enter__(self) -> HealthDatabase:
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
