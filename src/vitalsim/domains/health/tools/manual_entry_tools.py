"""MCP tools for manual vital-sign entry.

Entered readings go through the same alert rules as simulated ones and are
persisted to the encrypted health data bank together with any alert.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitalsim.domains.health.domain_logic.models import (
    MealContext,
    MetricKind,
    Reading,
    ReadingSource,
)
from vitalsim.domains.health.tools.arguments import (
    error_response,
    parse_enum,
    parse_timestamp,
)

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import ClockSource, SubjectSource
    from vitalsim.domains.health.domain_logic.pipeline import HealthPipeline

logger = logging.getLogger(__name__)


def register_manual_entry_tools(
    mcp: FastMCP,
    pipeline: HealthPipeline,
    clock: ClockSource,
    subject_source: SubjectSource,
) -> None:
    """Register manual reading entry tools on the MCP server."""

    @mcp.tool
    async def enter_reading(
        ctx: Context,
        metric_kind: str,
        primary_value: float,
        secondary_value: float | None = None,
        situation: str = "",
        meal_context: str = "none",
        timestamp: str = "",
        notes: str = "",
        pulse: int | None = None,
    ) -> str:
        """Record a vital-sign reading taken at home or at a doctor visit.

        Args:
            metric_kind: 'heart_rate', 'blood_pressure', 'blood_sugar' or 'steps'.
            primary_value: BPM, systolic mmHg, mg/dL or step count.
            secondary_value: Diastolic mmHg. Required for blood pressure.
            situation: Free-text label, e.g. 'After Lunch'.
            meal_context: 'fasting', 'before_meal', 'after_meal', 'between_meals',
                'before_sleep' or 'none'.
            timestamp: ISO 8601 time of the reading. Defaults to now.
            notes: Optional notes.
            pulse: Pulse in BPM taken with a blood pressure reading.
        """
        try:
            kind = parse_enum(MetricKind, metric_kind, "metric_kind")
            context = parse_enum(MealContext, meal_context, "meal_context")
            ts = parse_timestamp(timestamp, clock.now())
        except ValueError as exc:
            return error_response(str(exc))

        if kind is MetricKind.BLOOD_PRESSURE and secondary_value is None:
            return error_response("Blood pressure readings need secondary_value (diastolic)")
        if primary_value < 0 or (secondary_value is not None and secondary_value < 0):
            return error_response("Values must not be negative")

        subject = subject_source.current_subject_id()
        reading = Reading(
            id=str(uuid.uuid4()),
            subject_id=subject,
            metric_kind=kind,
            primary_value=primary_value,
            secondary_value=secondary_value if kind is MetricKind.BLOOD_PRESSURE else None,
            timestamp=ts,
            situation=situation,
            meal_context=context,
            source=ReadingSource.MANUAL,
            notes=notes,
            pulse=pulse if kind is MetricKind.BLOOD_PRESSURE else None,
            created_at=clock.now(),
        )
        alert, result = await pipeline.record(subject, reading)
        if result.failed:
            return error_response(f"Reading {reading.id} could not be stored")

        logger.info("Manual %s reading saved: %s (alert=%s)", kind.value, reading.id, alert is not None)
        return json.dumps({
            "status": "saved",
            "reading_id": reading.id,
            "metric_kind": kind.value,
            "timestamp": ts.isoformat(),
            "alert": alert.to_dict() if alert is not None else None,
        })
