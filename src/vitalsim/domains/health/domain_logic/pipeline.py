"""Synthesis -> evaluation -> persistence orchestration.

``generate_series`` and ``evaluate_alerts`` are thin, synchronous entry points
over the synthesizer and the alert engine. Persistence is best-effort: every
item is handed to its sink independently, failures are logged and counted in
a :class:`PersistResult` and never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from vitalsim.domains.health.domain_logic.alert_engine import ThresholdAlertEngine
from vitalsim.domains.health.domain_logic.models import (
    Alert,
    AlertPreferences,
    MetricKind,
    Period,
    Profile,
    Reading,
)
from vitalsim.domains.health.domain_logic.synthesizer import TimeSeriesSynthesizer

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import (
        AlertSink,
        CancellationToken,
        ClockSource,
        ReadingSink,
    )

logger = logging.getLogger(__name__)

MAX_BATCH_WORKERS = 8


@dataclass(frozen=True)
class SeriesRequest:
    """One series to generate in a batch."""

    subject_id: str
    metric_kind: MetricKind
    profile: Profile
    period: Period
    include_anomalies: bool = True


@dataclass
class PersistResult:
    """Outcome of a best-effort persistence pass."""

    stored: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.stored + self.failed

    def to_dict(self) -> dict[str, Any]:
        return {"stored": self.stored, "failed": self.failed, "failed_ids": self.failed_ids}


@dataclass
class SimulationOutcome:
    """Readings and alerts of one simulation run plus their persistence results."""

    readings: list[Reading]
    alerts: list[Alert]
    readings_persisted: PersistResult
    alerts_persisted: PersistResult


# ---------------------------------------------------------------------------
# Generation and evaluation
# ---------------------------------------------------------------------------

def generate_series(
    subject_id: str,
    metric_kind: MetricKind,
    profile: Profile,
    period: Period,
    include_anomalies: bool = True,
    *,
    clock: ClockSource,
    rng: np.random.Generator | None = None,
    cancel_token: CancellationToken | None = None,
) -> list[Reading]:
    """Generate one ordered series of readings."""
    synthesizer = TimeSeriesSynthesizer(clock, rng)
    return synthesizer.generate(
        subject_id,
        metric_kind,
        profile,
        period,
        include_anomalies,
        cancel_token=cancel_token,
    )


def evaluate_alerts(
    subject_id: str,
    readings: Iterable[Reading],
    *,
    clock: ClockSource,
    preferences: AlertPreferences | None = None,
) -> list[Alert]:
    """Evaluate readings in order; at most one alert per reading."""
    return ThresholdAlertEngine(clock, preferences).evaluate_batch(subject_id, readings)


def generate_batch(
    requests: Sequence[SeriesRequest],
    *,
    clock: ClockSource,
    seed: int | None = None,
    max_workers: int | None = None,
    cancel_token: CancellationToken | None = None,
) -> list[list[Reading]]:
    """Generate several series in parallel.

    Each request gets its own generator spawned from one ``SeedSequence``,
    so with a fixed ``seed`` the output does not depend on thread
    scheduling. Results are returned in request order.

    Raises:
        GenerationCancelled: If ``cancel_token`` is set while a series is
            being generated.
    """
    if not requests:
        return []

    children = np.random.SeedSequence(seed).spawn(len(requests))
    workers = max_workers or min(len(requests), MAX_BATCH_WORKERS)

    def _run_one(request: SeriesRequest, child: np.random.SeedSequence) -> list[Reading]:
        return generate_series(
            request.subject_id,
            request.metric_kind,
            request.profile,
            request.period,
            request.include_anomalies,
            clock=clock,
            rng=np.random.default_rng(child),
            cancel_token=cancel_token,
        )

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_run_one, request, child)
            for request, child in zip(requests, children)
        ]
        results = [future.result() for future in futures]

    logger.info(
        "Generated %d series (%d readings) with %d workers",
        len(results),
        sum(len(r) for r in results),
        workers,
    )
    return results


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

async def _persist(kind: str, store, items: Sequence[Any]) -> PersistResult:
    results = await asyncio.gather(
        *(store(item) for item in items),
        return_exceptions=True,
    )
    outcome = PersistResult()
    for item, result in zip(items, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result  # CancelledError and friends
            outcome.failed += 1
            outcome.failed_ids.append(item.id)
            logger.warning(
                "Failed to store %s %s for subject %s: %s",
                kind,
                item.id,
                item.subject_id,
                result,
            )
        else:
            outcome.stored += 1

    if outcome.failed:
        logger.warning("Stored %d/%d %ss", outcome.stored, outcome.total, kind)
    else:
        logger.debug("Stored %d %ss", outcome.stored, kind)
    return outcome


async def persist_readings(sink: ReadingSink, readings: Sequence[Reading]) -> PersistResult:
    """Hand every reading to ``sink``; failures are counted, not raised."""
    return await _persist("reading", sink.store, readings)


async def persist_alerts(sink: AlertSink, alerts: Sequence[Alert]) -> PersistResult:
    """Hand every alert to ``sink``; failures are counted, not raised."""
    return await _persist("alert", sink.store, alerts)


# ---------------------------------------------------------------------------
# End-to-end run
# ---------------------------------------------------------------------------

class HealthPipeline:
    """Generate, evaluate and persist in one call.

    Usage::

        pipeline = HealthPipeline(clock, reading_sink, alert_sink, rng=rng)
        outcome = await pipeline.run("user-1", MetricKind.BLOOD_PRESSURE,
                                     Profile.HYPERTENSIVE, Period.WEEK)
    """

    def __init__(
        self,
        clock: ClockSource,
        reading_sink: ReadingSink,
        alert_sink: AlertSink,
        *,
        rng: np.random.Generator | None = None,
        preferences: AlertPreferences | None = None,
    ) -> None:
        self._clock = clock
        self._reading_sink = reading_sink
        self._alert_sink = alert_sink
        self._synthesizer = TimeSeriesSynthesizer(clock, rng)
        self._engine = ThresholdAlertEngine(clock, preferences)

    async def run(
        self,
        subject_id: str,
        metric_kind: MetricKind,
        profile: Profile,
        period: Period,
        include_anomalies: bool = True,
    ) -> SimulationOutcome:
        readings = self._synthesizer.generate(
            subject_id, metric_kind, profile, period, include_anomalies
        )
        alerts = self._engine.evaluate_batch(subject_id, readings)
        readings_result = await persist_readings(self._reading_sink, readings)
        alerts_result = await persist_alerts(self._alert_sink, alerts)
        return SimulationOutcome(
            readings=readings,
            alerts=alerts,
            readings_persisted=readings_result,
            alerts_persisted=alerts_result,
        )

    async def record(self, subject_id: str, reading: Reading) -> tuple[Alert | None, PersistResult]:
        """Evaluate and persist a single externally supplied reading."""
        alert = self._engine.evaluate(subject_id, reading)
        result = await persist_readings(self._reading_sink, [reading])
        if alert is not None:
            alert_result = await persist_alerts(self._alert_sink, [alert])
            result = PersistResult(
                stored=result.stored + alert_result.stored,
                failed=result.failed + alert_result.failed,
                failed_ids=result.failed_ids + alert_result.failed_ids,
            )
        return alert, result
