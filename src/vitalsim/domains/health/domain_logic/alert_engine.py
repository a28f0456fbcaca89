"""Rule-based threshold alerting for single readings.

Each metric kind has an ordered list of mutually exclusive branches; the first
matching branch produces the alert and later branches are not evaluated.
Values are truncated to whole units before comparison, the same way they are
rendered in the alert text.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from vitalsim.domains.health.domain_logic.models import (
    FASTING_CONTEXTS,
    Alert,
    AlertPreferences,
    AlertType,
    MealContext,
    MetricKind,
    Reading,
)

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import ClockSource

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Clinical thresholds
# ---------------------------------------------------------------------------

HIGH_HEART_RATE_BPM = 100        # strictly above
LOW_HEART_RATE_BPM = 50          # strictly below
HIGH_SYSTOLIC_MMHG = 140
HIGH_DIASTOLIC_MMHG = 90
LOW_SYSTOLIC_MMHG = 90
LOW_DIASTOLIC_MMHG = 60
HIGH_FASTING_SUGAR_MGDL = 126
HIGH_POST_MEAL_SUGAR_MGDL = 200
LOW_SUGAR_MGDL = 70

_FASTING_KEYWORDS = ("fasting", "before")


def is_fasting(reading: Reading) -> bool:
    """Whether a blood sugar reading is judged against the fasting threshold.

    Uses the explicit meal context when present. Readings without one
    (e.g. manual entries) fall back to the free-text situation label.
    """
    if reading.meal_context is not MealContext.NONE:
        return reading.meal_context in FASTING_CONTEXTS
    situation = reading.situation.lower()
    return any(word in situation for word in _FASTING_KEYWORDS)


def _has_finite_values(reading: Reading) -> bool:
    values = [reading.primary_value]
    if reading.secondary_value is not None:
        values.append(reading.secondary_value)
    return all(math.isfinite(v) for v in values)


class ThresholdAlertEngine:
    """Evaluates readings against metric-specific clinical thresholds.

    Usage::

        engine = ThresholdAlertEngine(SystemClock())
        alert = engine.evaluate("user-1", reading)   # Alert | None
        alerts = engine.evaluate_batch("user-1", readings)
    """

    def __init__(
        self,
        clock: ClockSource,
        preferences: AlertPreferences | None = None,
    ) -> None:
        self._clock = clock
        self._preferences = preferences or AlertPreferences()

    def evaluate(self, subject_id: str, reading: Reading) -> Alert | None:
        """Return the alert for ``reading``, or None if no rule matches."""
        if not self._preferences.allows(reading.metric_kind):
            return None
        if not _has_finite_values(reading):
            logger.warning(
                "Skipping %s reading %s with non-finite value", reading.metric_kind.value, reading.id
            )
            return None

        if reading.metric_kind is MetricKind.HEART_RATE:
            match = self._check_heart_rate(reading)
        elif reading.metric_kind is MetricKind.BLOOD_PRESSURE:
            match = self._check_blood_pressure(reading)
        elif reading.metric_kind is MetricKind.BLOOD_SUGAR:
            match = self._check_blood_sugar(reading)
        else:
            return None  # no step rules

        if match is None:
            return None

        alert_type, metric_name, value = match
        return Alert(
            id=str(uuid.uuid4()),
            subject_id=subject_id,
            alert_type=alert_type,
            metric_name=metric_name,
            value=value,
            timestamp=reading.timestamp,
            created_at=self._clock.now(),
            reading_id=reading.id,
        )

    def evaluate_batch(self, subject_id: str, readings: Iterable[Reading]) -> list[Alert]:
        """Evaluate readings in order; at most one alert per reading."""
        alerts: list[Alert] = []
        count = 0
        for reading in readings:
            count += 1
            alert = self.evaluate(subject_id, reading)
            if alert is not None:
                alerts.append(alert)
        logger.info(
            "Evaluated %d readings for subject %s: %d alerts", count, subject_id, len(alerts)
        )
        return alerts

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @staticmethod
    def _check_heart_rate(reading: Reading) -> tuple[AlertType, str, str] | None:
        bpm = int(reading.primary_value)
        value = f"{bpm} BPM"
        if bpm > HIGH_HEART_RATE_BPM:
            return AlertType.HIGH_HEART_RATE, "Heart Rate", value
        if bpm < LOW_HEART_RATE_BPM:
            return AlertType.LOW_HEART_RATE, "Heart Rate", value
        return None

    @staticmethod
    def _check_blood_pressure(reading: Reading) -> tuple[AlertType, str, str] | None:
        if reading.secondary_value is None:
            return None
        systolic = int(reading.primary_value)
        diastolic = int(reading.secondary_value)
        value = f"{systolic}/{diastolic} mmHg"
        if systolic >= HIGH_SYSTOLIC_MMHG or diastolic >= HIGH_DIASTOLIC_MMHG:
            return AlertType.HIGH_BLOOD_PRESSURE, "Blood Pressure", value
        if systolic <= LOW_SYSTOLIC_MMHG or diastolic <= LOW_DIASTOLIC_MMHG:
            return AlertType.LOW_BLOOD_PRESSURE, "Blood Pressure", value
        return None

    @staticmethod
    def _check_blood_sugar(reading: Reading) -> tuple[AlertType, str, str] | None:
        mgdl = int(reading.primary_value)
        value = f"{mgdl} mg/dL"
        fasting = is_fasting(reading)
        if fasting and mgdl >= HIGH_FASTING_SUGAR_MGDL:
            return AlertType.HIGH_BLOOD_SUGAR, "Blood Sugar (Fasting)", value
        if not fasting and mgdl >= HIGH_POST_MEAL_SUGAR_MGDL:
            return AlertType.HIGH_BLOOD_SUGAR, "Blood Sugar (Post-meal)", value
        if mgdl <= LOW_SUGAR_MGDL:
            return AlertType.LOW_BLOOD_SUGAR, "Blood Sugar", value
        return None
