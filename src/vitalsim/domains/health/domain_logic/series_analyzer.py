"""Summary statistics for reading series.

Computes the average / maximum / minimum shown alongside a metric chart, plus a
coarse trend direction, either for an in-memory series or for readings already
stored in the health data bank.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from vitalsim.core.storage.repository import HealthRepository
from vitalsim.domains.health.connectors.providers import row_to_reading
from vitalsim.domains.health.domain_logic.models import MetricKind, Reading

logger = logging.getLogger(__name__)

# Relative change between the halves of a series below which it is "stable"
STABLE_TOLERANCE = 0.03


def _direction(values: Sequence[float]) -> str:
    """Compare the older and newer halves of an oldest-first series."""
    if len(values) < 2:
        return "insufficient_data"
    if len(values) >= 4:
        mid = len(values) // 2
        older, newer = statistics.mean(values[:mid]), statistics.mean(values[mid:])
    else:
        older, newer = values[0], values[-1]
    if older == 0:
        return "stable" if newer == 0 else "increasing"
    change = (newer - older) / abs(older)
    if change > STABLE_TOLERANCE:
        return "increasing"
    if change < -STABLE_TOLERANCE:
        return "decreasing"
    return "stable"


def _stats(values: Sequence[float]) -> dict[str, float]:
    return {
        "average": round(statistics.mean(values), 1),
        "max": max(values),
        "min": min(values),
    }


def hourly_increments(readings: Sequence[Reading]) -> list[int]:
    """Steps added per hour for a cumulative hourly series.

    Uses the explicit ``increment`` when present, otherwise the difference
    from the previous running total.
    """
    increments: list[int] = []
    previous = 0.0
    for reading in readings:
        if reading.increment is not None:
            increments.append(reading.increment)
        else:
            increments.append(int(reading.primary_value - previous))
        previous = reading.primary_value
    return increments


def summarize_series(readings: Sequence[Reading]) -> dict[str, Any]:
    """Summarize one metric's readings.

    Args:
        readings: Readings of a single metric kind, oldest first.

    Returns:
        Dict with metric_kind, data_points, average, max, min, latest,
        direction, first/last timestamps and, for blood pressure, the same
        statistics for diastolic values. Empty input yields
        ``{"data_points": 0, "status": "no_data"}``.
    """
    if not readings:
        return {"data_points": 0, "status": "no_data"}

    ordered = sorted(readings, key=lambda r: r.timestamp)
    kind = ordered[0].metric_kind
    cumulative = kind is MetricKind.STEPS and any(r.increment is not None for r in ordered)
    values = (
        [float(v) for v in hourly_increments(ordered)]
        if cumulative
        else [r.primary_value for r in ordered]
    )

    summary: dict[str, Any] = {
        "metric_kind": kind.value,
        "data_points": len(ordered),
        **_stats(values),
        "latest": ordered[-1].primary_value,
        "direction": _direction(values),
        "first_timestamp": ordered[0].timestamp.isoformat(),
        "last_timestamp": ordered[-1].timestamp.isoformat(),
    }

    if kind is MetricKind.BLOOD_PRESSURE:
        diastolic = [r.secondary_value for r in ordered if r.secondary_value is not None]
        if diastolic:
            summary["diastolic"] = {**_stats(diastolic), "latest": diastolic[-1]}
    if cumulative:
        summary["total"] = ordered[-1].primary_value

    return summary


class SeriesAnalyzer:
    """Summaries over readings stored in the health data bank.

    Usage::

        analyzer = SeriesAnalyzer(repository)
        summary = analyzer.summarize("user-1", MetricKind.HEART_RATE)
    """

    def __init__(self, repository: HealthRepository) -> None:
        self._repo = repository

    def summarize(
        self,
        subject_id: str,
        metric_kind: MetricKind,
        *,
        since: datetime | None = None,
        limit: int = 500,
    ) -> dict[str, Any]:
        rows = self._repo.get_readings(
            subject_id,
            metric_kind=metric_kind.value,
            since=since.astimezone(timezone.utc).isoformat() if since else None,
            limit=limit,
        )
        summary = summarize_series([row_to_reading(row) for row in rows])
        summary.setdefault("metric_kind", metric_kind.value)
        logger.debug(
            "Summarized %d %s readings for subject %s",
            summary["data_points"],
            metric_kind.value,
            subject_id,
        )
        return summary
