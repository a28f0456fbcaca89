"""Concrete collaborator implementations: clocks, subject source and sinks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from vitalsim.core.storage.models import StoredAlert, StoredReading
from vitalsim.core.storage.repository import HealthRepository
from vitalsim.domains.health.domain_logic.models import (
    Alert,
    AlertType,
    MealContext,
    MetricKind,
    Reading,
    ReadingSource,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Clocks and subject
# ---------------------------------------------------------------------------

class SystemClock:
    """Wall clock in a configured IANA timezone."""

    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self._tz)


class FixedClock:
    """Always returns the same instant. Naive datetimes are taken as UTC."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


class StaticSubjectSource:
    """Single-user deployments: the subject id comes from configuration."""

    def __init__(self, subject_id: str) -> None:
        self._subject_id = subject_id

    def current_subject_id(self) -> str:
        return self._subject_id


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def _utc_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def reading_to_row(reading: Reading) -> StoredReading:
    payload: dict = {}
    if reading.notes:
        payload["notes"] = reading.notes
    if reading.pulse is not None:
        payload["pulse"] = reading.pulse
    if reading.increment is not None:
        payload["increment"] = reading.increment
    return StoredReading(
        id=reading.id,
        subject_id=reading.subject_id,
        metric_kind=reading.metric_kind.value,
        primary_value=reading.primary_value,
        secondary_value=reading.secondary_value,
        timestamp=_utc_iso(reading.timestamp),
        situation=reading.situation,
        meal_context=reading.meal_context.value,
        source=reading.source.value,
        payload=payload,
        created_at=_utc_iso(reading.created_at) if reading.created_at else "",
    )


def row_to_reading(row: StoredReading) -> Reading:
    payload = row.payload or {}
    return Reading(
        id=row.id,
        subject_id=row.subject_id,
        metric_kind=MetricKind(row.metric_kind),
        primary_value=row.primary_value,
        secondary_value=row.secondary_value,
        timestamp=datetime.fromisoformat(row.timestamp),
        situation=row.situation,
        meal_context=MealContext(row.meal_context),
        source=ReadingSource(row.source),
        notes=payload.get("notes", ""),
        pulse=payload.get("pulse"),
        increment=payload.get("increment"),
        created_at=datetime.fromisoformat(row.created_at) if row.created_at else None,
    )


def alert_to_row(alert: Alert) -> StoredAlert:
    return StoredAlert(
        id=alert.id,
        subject_id=alert.subject_id,
        alert_type=alert.alert_type.value,
        metric_name=alert.metric_name,
        value=alert.value,
        timestamp=_utc_iso(alert.timestamp),
        read=alert.read,
        created_at=_utc_iso(alert.created_at),
        reading_id=alert.reading_id,
    )


def row_to_alert(row: StoredAlert) -> Alert:
    return Alert(
        id=row.id,
        subject_id=row.subject_id,
        alert_type=AlertType(row.alert_type),
        metric_name=row.metric_name,
        value=row.value,
        timestamp=datetime.fromisoformat(row.timestamp),
        created_at=datetime.fromisoformat(row.created_at),
        read=row.read,
        reading_id=row.reading_id,
    )


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

class DiscardingSink:
    """Counts what it is given and keeps nothing.

    Satisfies both ReadingSink and AlertSink; the server uses one of each when
    no health data bank is configured, so repeated simulations do not hold
    their output in memory.
    """

    def __init__(self) -> None:
        self.count = 0

    async def store(self, item: Reading | Alert) -> None:
        self.count += 1


class InMemoryReadingSink:
    """Collects readings in a list. Used by tests."""

    def __init__(self) -> None:
        self.items: list[Reading] = []

    async def store(self, reading: Reading) -> None:
        self.items.append(reading)


class InMemoryAlertSink:
    """Collects alerts in a list. Used by tests."""

    def __init__(self) -> None:
        self.items: list[Alert] = []

    async def store(self, alert: Alert) -> None:
        self.items.append(alert)


class RepositoryReadingSink:
    """ReadingSink backed by the SQLite health data bank."""

    def __init__(self, repository: HealthRepository) -> None:
        self._repo = repository

    async def store(self, reading: Reading) -> None:
        self._repo.save_reading(reading_to_row(reading))


class RepositoryAlertSink:
    """AlertSink backed by the SQLite health data bank."""

    def __init__(self, repository: HealthRepository) -> None:
        self._repo = repository

    async def store(self, alert: Alert) -> None:
        self._repo.save_alert(alert_to_row(alert))
