"""Health data repository — CRUD for readings and alerts.

The repository mediates between row models (StoredReading, StoredAlert) and
the SQLite database, using PayloadEncryptor for the encrypted reading payload.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from vitalsim.core.storage.database import HealthDatabase
from vitalsim.core.storage.encryption import PayloadEncryptor
from vitalsim.core.storage.models import StoredAlert, StoredReading

logger = logging.getLogger(__name__)

_INSERT_READING = """
INSERT INTO readings (
    id, subject_id, metric_kind, primary_value, secondary_value,
    timestamp, situation, meal_context, source, payload_enc, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_INSERT_ALERT = """
INSERT INTO alerts (
    id, subject_id, alert_type, metric_name, value, timestamp, read, reading_id, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class HealthRepository:
    """CRUD repository for readings and alerts.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        repo = HealthRepository(db, PayloadEncryptor(key))

        repo.save_reading(stored_reading)
        unread = repo.get_alerts("user-1", unread_only=True)
    """

    def __init__(self, database: HealthDatabase, encryptor: PayloadEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def save_reading(self, reading: StoredReading) -> str:
        """Persist a reading. Generates an id if ``reading.id`` is empty.

        Raises:
            RepositoryError: If a reading with the same id already exists.
        """
        rid = reading.id or str(uuid.uuid4())
        params = (
            rid,
            reading.subject_id,
            reading.metric_kind,
            reading.primary_value,
            reading.secondary_value,
            reading.timestamp,
            reading.situation,
            reading.meal_context,
            reading.source,
            self._enc.encrypt(reading.payload),
            reading.created_at or self._now_iso(),
        )
        try:
            with self._db.transaction() as conn:
                conn.execute(_INSERT_READING, params)
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Reading {rid} already stored") from exc

        logger.debug("Saved %s reading %s for subject %s", reading.metric_kind, rid, reading.subject_id)
        return rid

    def get_reading(self, reading_id: str) -> StoredReading | None:
        row = self._db.connection.execute(
            "SELECT * FROM readings WHERE id = ?", (reading_id,)
        ).fetchone()
        return self._row_to_reading(row) if row is not None else None

    def get_readings(
        self,
        subject_id: str,
        *,
        metric_kind: str | None = None,
        since: str | None = None,
        until: str | None = None,
        limit: int = 500,
    ) -> list[StoredReading]:
        """Query a subject's readings, newest first.

        Args:
            subject_id: Owner of the readings.
            metric_kind: Optional metric filter (e.g. 'blood_pressure').
            since: ISO 8601 UTC lower bound (inclusive).
            until: ISO 8601 UTC upper bound (inclusive).
            limit: Maximum results.
        """
        conditions = ["subject_id = ?"]
        params: list[Any] = [subject_id]

        if metric_kind:
            conditions.append("metric_kind = ?")
            params.append(metric_kind)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)
        if until:
            conditions.append("timestamp <= ?")
            params.append(until)

        where = " AND ".join(conditions)
        query = f"SELECT * FROM readings WHERE {where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_reading(row) for row in rows]

    def count_readings(self, subject_id: str | None = None) -> int:
        if subject_id is None:
            row = self._db.connection.execute("SELECT COUNT(*) FROM readings").fetchone()
        else:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM readings WHERE subject_id = ?", (subject_id,)
            ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def save_alert(self, alert: StoredAlert) -> str:
        """Persist an alert.

        Raises:
            RepositoryError: If an alert with the same id already exists.
        """
        aid = alert.id or str(uuid.uuid4())
        params = (
            aid,
            alert.subject_id,
            alert.alert_type,
            alert.metric_name,
            alert.value,
            alert.timestamp,
            int(alert.read),
            alert.reading_id or None,
            alert.created_at or self._now_iso(),
        )
        try:
            with self._db.transaction() as conn:
                conn.execute(_INSERT_ALERT, params)
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Alert {aid} already stored") from exc

        logger.info("Saved alert %s (%s %s) for subject %s", aid, alert.alert_type, alert.value, alert.subject_id)
        return aid

    def get_alerts(
        self,
        subject_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[StoredAlert]:
        """A subject's alerts, newest reading time first."""
        query = "SELECT * FROM alerts WHERE subject_id = ?"
        params: list[Any] = [subject_id]
        if unread_only:
            query += " AND read = 0"
        query += " ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_alert(row) for row in rows]

    def mark_alert_read(self, alert_id: str) -> bool:
        """Set the read flag. Returns False if the alert does not exist."""
        with self._db.transaction() as conn:
            cursor = conn.execute("UPDATE alerts SET read = 1 WHERE id = ?", (alert_id,))
        return cursor.rowcount > 0

    def count_unread_alerts(self, subject_id: str) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM alerts WHERE subject_id = ? AND read = 0", (subject_id,)
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def purge_before(self, before_timestamp: str) -> int:
        """Delete readings and alerts with ``timestamp < before_timestamp``.

        Returns:
            Number of readings deleted.
        """
        with self._db.transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM readings WHERE timestamp < ?", (before_timestamp,)
            ).rowcount
            conn.execute("DELETE FROM alerts WHERE timestamp < ?", (before_timestamp,))
        logger.info("Purged %d readings older than %s", deleted, before_timestamp)
        return deleted

    def purge_before_days(self, days: int) -> int:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        return self.purge_before(cutoff)

    def delete_subject_data(self, subject_id: str) -> int:
        """Delete every reading and alert of a subject. Returns readings deleted."""
        with self._db.transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM readings WHERE subject_id = ?", (subject_id,)
            ).rowcount
            conn.execute("DELETE FROM alerts WHERE subject_id = ?", (subject_id,))
        logger.warning("Deleted all data for subject %s: %d readings removed", subject_id, deleted)
        return deleted

    def rotate_payloads(self) -> int:
        """Re-encrypt every stored payload under the primary key."""
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT id, payload_enc FROM readings WHERE payload_enc IS NOT NULL AND payload_enc != ''"
            ).fetchall()
            conn.executemany(
                "UPDATE readings SET payload_enc = ? WHERE id = ?",
                [(self._enc.rotate(row["payload_enc"]), row["id"]) for row in rows],
            )
        logger.info("Rotated %d reading payloads", len(rows))
        return len(rows)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _row_to_reading(self, row: sqlite3.Row) -> StoredReading:
        return StoredReading(
            id=row["id"],
            subject_id=row["subject_id"],
            metric_kind=row["metric_kind"],
            primary_value=row["primary_value"],
            secondary_value=row["secondary_value"],
            timestamp=row["timestamp"],
            situation=row["situation"] or "",
            meal_context=row["meal_context"],
            source=row["source"],
            payload=self._enc.decrypt(row["payload_enc"] or ""),
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> StoredAlert:
        return StoredAlert(
            id=row["id"],
            subject_id=row["subject_id"],
            alert_type=row["alert_type"],
            metric_name=row["metric_name"],
            value=row["value"],
            timestamp=row["timestamp"],
            read=bool(row["read"]),
            created_at=row["created_at"],
            reading_id=row["reading_id"] or "",
        )
