"""Reading and alert models plus the closed vocabularies they are built from."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

class MetricKind(str, enum.Enum):
    """Physiological metric a reading measures."""

    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE = "blood_pressure"
    BLOOD_SUGAR = "blood_sugar"
    STEPS = "steps"


class Profile(str, enum.Enum):
    """Clinical archetype that parameterizes baseline values."""

    HEALTHY = "healthy"
    ACTIVE = "active"
    SEDENTARY = "sedentary"
    PRE_HYPERTENSIVE = "pre_hypertensive"
    HYPERTENSIVE = "hypertensive"
    PRE_DIABETIC = "pre_diabetic"
    DIABETIC = "diabetic"


class Period(str, enum.Enum):
    """Requested lookback window."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "three_months"
    SIX_MONTHS = "six_months"
    YEAR = "year"


class MealContext(str, enum.Enum):
    """Meal-relative context of a blood sugar reading."""

    FASTING = "fasting"
    BEFORE_MEAL = "before_meal"
    AFTER_MEAL = "after_meal"
    BETWEEN_MEALS = "between_meals"
    BEFORE_SLEEP = "before_sleep"
    NONE = "none"


# Contexts judged against the fasting threshold (126 mg/dL)
FASTING_CONTEXTS = frozenset({
    MealContext.FASTING,
    MealContext.BEFORE_MEAL,
    MealContext.BEFORE_SLEEP,
})


class ReadingSource(str, enum.Enum):
    """Provenance tag. Informational only."""

    SIMULATOR = "simulator"
    MANUAL = "manual"
    SENSOR = "sensor"


class AlertType(str, enum.Enum):
    """Type of threshold breach."""

    HIGH_HEART_RATE = "high_heart_rate"
    LOW_HEART_RATE = "low_heart_rate"
    HIGH_BLOOD_PRESSURE = "high_blood_pressure"
    LOW_BLOOD_PRESSURE = "low_blood_pressure"
    HIGH_BLOOD_SUGAR = "high_blood_sugar"
    LOW_BLOOD_SUGAR = "low_blood_sugar"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Reading:
    """A single physiological observation.

    ``primary_value`` is BPM, systolic mmHg, mg/dL or a step count depending
    on ``metric_kind``. ``secondary_value`` carries diastolic mmHg and is set
    only for blood pressure. For hourly step series ``primary_value`` is the
    running total for the day and ``increment`` the steps added in that hour.
    """

    id: str
    subject_id: str
    metric_kind: MetricKind
    primary_value: float
    timestamp: datetime
    secondary_value: float | None = None
    situation: str = ""
    meal_context: MealContext = MealContext.NONE
    source: ReadingSource = ReadingSource.SIMULATOR
    notes: str = ""
    pulse: int | None = None
    increment: int | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        data: dict[str, Any] = {
            "id": self.id,
            "subject_id": self.subject_id,
            "metric_kind": self.metric_kind.value,
            "primary_value": self.primary_value,
            "timestamp": self.timestamp.isoformat(),
            "situation": self.situation,
            "meal_context": self.meal_context.value,
            "source": self.source.value,
        }
        if self.secondary_value is not None:
            data["secondary_value"] = self.secondary_value
        if self.notes:
            data["notes"] = self.notes
        if self.pulse is not None:
            data["pulse"] = self.pulse
        if self.increment is not None:
            data["increment"] = self.increment
        return data


@dataclass
class Alert:
    """A detected threshold breach.

    ``timestamp`` is the triggering reading's timestamp; ``created_at`` is
    when the breach was detected. Only ``read`` changes after creation.
    """

    id: str
    subject_id: str
    alert_type: AlertType
    metric_name: str
    value: str  # unit-suffixed, e.g. "118 BPM"
    timestamp: datetime
    created_at: datetime
    read: bool = False
    reading_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (persisted alert shape)."""
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "alert_type": self.alert_type.value,
            "metric_name": self.metric_name,
            "value": self.value,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class AlertPreferences:
    """Per-metric alert toggles. A disabled metric never produces alerts."""

    heart_rate: bool = True
    blood_pressure: bool = True
    blood_sugar: bool = True

    def allows(self, metric_kind: MetricKind) -> bool:
        toggles = {
            MetricKind.HEART_RATE: self.heart_rate,
            MetricKind.BLOOD_PRESSURE: self.blood_pressure,
            MetricKind.BLOOD_SUGAR: self.blood_sugar,
        }
        return toggles.get(metric_kind, True)
