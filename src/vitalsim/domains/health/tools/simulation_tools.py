"""MCP tools for synthetic vital-sign generation and threshold evaluation.

``generate_health_series`` and ``evaluate_reading`` are side-effect free.
``simulate_health_data`` runs the full generate -> evaluate -> persist pipeline
against the configured sinks.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import numpy as np
from fastmcp import Context, FastMCP

from vitalsim.domains.health.domain_logic.alert_engine import ThresholdAlertEngine
from vitalsim.domains.health.domain_logic.models import (
    AlertPreferences,
    MealContext,
    MetricKind,
    Period,
    Profile,
    Reading,
    ReadingSource,
)
from vitalsim.domains.health.domain_logic.pipeline import HealthPipeline
from vitalsim.domains.health.domain_logic.series_analyzer import summarize_series
from vitalsim.domains.health.domain_logic.synthesizer import TimeSeriesSynthesizer
from vitalsim.domains.health.tools.arguments import (
    error_response,
    parse_enum,
    parse_timestamp,
)

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import (
        AlertSink,
        ClockSource,
        ReadingSink,
        SubjectSource,
    )

logger = logging.getLogger(__name__)


def register_simulation_tools(
    mcp: FastMCP,
    *,
    clock: ClockSource,
    subject_source: SubjectSource,
    rng: np.random.Generator,
    reading_sink: ReadingSink,
    alert_sink: AlertSink,
    preferences: AlertPreferences | None = None,
) -> None:
    """Register generation, simulation and evaluation tools on the MCP server."""
    synthesizer = TimeSeriesSynthesizer(clock, rng)
    alert_engine = ThresholdAlertEngine(clock, preferences)
    pipeline = HealthPipeline(
        clock, reading_sink, alert_sink, rng=rng, preferences=preferences
    )

    @mcp.tool
    async def generate_health_series(
        ctx: Context,
        metric_kind: str,
        profile: str = "healthy",
        period: str = "week",
        include_anomalies: bool = True,
        subject_id: str = "",
    ) -> str:
        """Generate a synthetic vital-sign series without storing it.

        Args:
            metric_kind: 'heart_rate', 'blood_pressure', 'blood_sugar' or 'steps'.
            profile: Clinical profile, e.g. 'healthy', 'hypertensive', 'diabetic'.
            period: 'day', 'week', 'month', 'three_months', 'six_months' or 'year'.
            include_anomalies: Inject occasional out-of-range readings.
            subject_id: Subject to generate for. Defaults to the configured subject.
        """
        try:
            kind = parse_enum(MetricKind, metric_kind, "metric_kind")
            prof = parse_enum(Profile, profile, "profile")
            per = parse_enum(Period, period, "period")
        except ValueError as exc:
            return error_response(str(exc))

        subject = subject_id or subject_source.current_subject_id()
        readings = synthesizer.generate(subject, kind, prof, per, include_anomalies)
        return json.dumps({
            "status": "ok",
            "subject_id": subject,
            "metric_kind": kind.value,
            "profile": prof.value,
            "period": per.value,
            "count": len(readings),
            "summary": summarize_series(readings),
            "readings": [r.to_dict() for r in readings],
        })

    @mcp.tool
    async def simulate_health_data(
        ctx: Context,
        metric_kind: str,
        profile: str = "healthy",
        period: str = "week",
        include_anomalies: bool = True,
        subject_id: str = "",
    ) -> str:
        """Generate a series, evaluate every reading and store readings and alerts.

        Args:
            metric_kind: 'heart_rate', 'blood_pressure', 'blood_sugar' or 'steps'.
            profile: Clinical profile, e.g. 'healthy', 'hypertensive', 'diabetic'.
            period: 'day', 'week', 'month', 'three_months', 'six_months' or 'year'.
            include_anomalies: Inject occasional out-of-range readings.
            subject_id: Subject to simulate. Defaults to the configured subject.
        """
        try:
            kind = parse_enum(MetricKind, metric_kind, "metric_kind")
            prof = parse_enum(Profile, profile, "profile")
            per = parse_enum(Period, period, "period")
        except ValueError as exc:
            return error_response(str(exc))

        subject = subject_id or subject_source.current_subject_id()
        outcome = await pipeline.run(subject, kind, prof, per, include_anomalies)
        logger.info(
            "Simulated %d %s readings for subject %s: %d alerts",
            len(outcome.readings),
            kind.value,
            subject,
            len(outcome.alerts),
        )
        return json.dumps({
            "status": "ok",
            "subject_id": subject,
            "metric_kind": kind.value,
            "profile": prof.value,
            "period": per.value,
            "readings_generated": len(outcome.readings),
            "alerts_generated": len(outcome.alerts),
            "readings_persisted": outcome.readings_persisted.to_dict(),
            "alerts_persisted": outcome.alerts_persisted.to_dict(),
            "alerts": [a.to_dict() for a in outcome.alerts],
        }, indent=2)

    @mcp.tool
    async def evaluate_reading(
        ctx: Context,
        metric_kind: str,
        primary_value: float,
        secondary_value: float | None = None,
        situation: str = "",
        meal_context: str = "none",
        timestamp: str = "",
    ) -> str:
        """Check a single value against the clinical alert thresholds.

        Nothing is stored.

        Args:
            metric_kind: 'heart_rate', 'blood_pressure', 'blood_sugar' or 'steps'.
            primary_value: BPM, systolic mmHg, mg/dL or step count.
            secondary_value: Diastolic mmHg (blood pressure only).
            situation: Free-text label, e.g. 'Before Breakfast'.
            meal_context: 'fasting', 'before_meal', 'after_meal', 'between_meals',
                'before_sleep' or 'none'.
            timestamp: ISO 8601 time of the reading. Defaults to now.
        """
        try:
            kind = parse_enum(MetricKind, metric_kind, "metric_kind")
            context = parse_enum(MealContext, meal_context, "meal_context")
            ts = parse_timestamp(timestamp, clock.now())
        except ValueError as exc:
            return error_response(str(exc))

        subject = subject_source.current_subject_id()
        reading = Reading(
            id="",
            subject_id=subject,
            metric_kind=kind,
            primary_value=primary_value,
            secondary_value=secondary_value,
            timestamp=ts,
            situation=situation,
            meal_context=context,
            source=ReadingSource.MANUAL,
        )
        alert = alert_engine.evaluate(subject, reading)
        return json.dumps({
            "status": "ok",
            "alert": alert.to_dict() if alert is not None else None,
        })
