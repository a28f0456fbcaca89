"""Tests for the ThresholdAlertEngine — clinical threshold rules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from vitalsim.domains.health.domain_logic.alert_engine import ThresholdAlertEngine, is_fasting
from vitalsim.domains.health.domain_logic.models import (
    AlertPreferences,
    AlertType,
    MealContext,
    MetricKind,
    Reading,
)

READING_TIME = datetime(2025, 6, 10, 8, 0, tzinfo=timezone.utc)


def _reading(
    kind: MetricKind,
    value: float,
    secondary: float | None = None,
    situation: str = "",
    meal_context: MealContext = MealContext.NONE,
    **kwargs,
) -> Reading:
    return Reading(
        id=kwargs.pop("id", "r-1"),
        subject_id="user-1",
        metric_kind=kind,
        primary_value=value,
        secondary_value=secondary,
        timestamp=kwargs.pop("timestamp", READING_TIME),
        situation=situation,
        meal_context=meal_context,
        **kwargs,
    )


@pytest.fixture
def alert_engine(clock) -> ThresholdAlertEngine:
    return ThresholdAlertEngine(clock)


class TestHeartRate:
    def test_high_heart_rate(self, alert_engine):
        alert = alert_engine.evaluate("user-1", _reading(MetricKind.HEART_RATE, 118))
        assert alert is not None
        assert alert.alert_type is AlertType.HIGH_HEART_RATE
        assert alert.metric_name == "Heart Rate"
        assert alert.value == "118 BPM"

    def test_low_heart_rate(self, alert_engine):
        alert = alert_engine.evaluate("user-1", _reading(MetricKind.HEART_RATE, 45))
        assert alert.alert_type is AlertType.LOW_HEART_RATE
        assert alert.value == "45 BPM"

    def test_normal_heart_rate(self, alert_engine):
        assert alert_engine.evaluate("user-1", _reading(MetricKind.HEART_RATE, 72)) is None

    @pytest.mark.parametrize("bpm, expected", [
        (100, None),
        (101, AlertType.HIGH_HEART_RATE),
        (50, None),
        (49, AlertType.LOW_HEART_RATE),
        (100.9, None),  # truncated to 100
    ])
    def test_boundaries(self, alert_engine, bpm, expected):
        alert = alert_engine.evaluate("user-1", _reading(MetricKind.HEART_RATE, bpm))
        assert (alert.alert_type if alert else None) is expected


class TestBloodPressure:
    def test_high_blood_pressure(self, alert_engine):
        alert = alert_engine.evaluate("user-1", _reading(MetricKind.BLOOD_PRESSURE, 148, 96))
        assert alert.alert_type is AlertType.HIGH_BLOOD_PRESSURE
        assert alert.metric_name == "Blood Pressure"
        assert alert.value == "148/96 mmHg"

    def test_low_blood_pressure(self, alert_engine):
        alert = alert_engine.evaluate("user-1", _reading(MetricKind.BLOOD_PRESSURE, 88, 58))
        assert alert.alert_type is AlertType.LOW_BLOOD_PRESSURE
        assert alert.value == "88/58 mmHg"

    def test_normal_blood_pressure(self, alert_engine):
        assert alert_engine.evaluate("user-1", _reading(MetricKind.BLOOD_PRESSURE, 110, 70)) is None

    @pytest.mark.parametrize("systolic, diastolic, expected", [
        (140, 80, AlertType.HIGH_BLOOD_PRESSURE),
        (120, 90, AlertType.HIGH_BLOOD_PRESSURE),
        (90, 70, AlertType.LOW_BLOOD_PRESSURE),
        (120, 60, AlertType.LOW_BLOOD_PRESSURE),
        (141, 55, AlertType.HIGH_BLOOD_PRESSURE),  # high branch wins
        (139, 89, None),
        (91, 61, None),
    ])
    def test_boundaries(self, alert_engine, systolic, diastolic, expected):
        alert = alert_engine.evaluate(
            "user-1", _reading(MetricKind.BLOOD_PRESSURE, systolic, diastolic)
        )
        assert (alert.alert_type if alert else None) is expected

    def test_missing_diastolic_yields_no_alert(self, alert_engine):
        assert alert_engine.evaluate("user-1", _reading(MetricKind.BLOOD_PRESSURE, 190)) is None


class TestBloodSugar:
    def test_fasting_situation_uses_fasting_threshold(self, alert_engine):
        alert = alert_engine.evaluate(
            "user-1", _reading(MetricKind.BLOOD_SUGAR, 130, situation="Fasting")
        )
        assert alert.alert_type is AlertType.HIGH_BLOOD_SUGAR
        assert alert.metric_name == "Blood Sugar (Fasting)"
        assert alert.value == "130 mg/dL"

    def test_same_value_after_lunch_is_fine(self, alert_engine):
        reading = _reading(MetricKind.BLOOD_SUGAR, 130, situation="After Lunch")
        assert alert_engine.evaluate("user-1", reading) is None

    def test_post_meal_high(self, alert_engine):
        alert = alert_engine.evaluate(
            "user-1", _reading(MetricKind.BLOOD_SUGAR, 210, situation="After Dinner")
        )
        assert alert.alert_type is AlertType.HIGH_BLOOD_SUGAR
        assert alert.metric_name == "Blood Sugar (Post-meal)"

    def test_low_blood_sugar(self, alert_engine):
        alert = alert_engine.evaluate(
            "user-1", _reading(MetricKind.BLOOD_SUGAR, 62, situation="Before Lunch")
        )
        assert alert.alert_type is AlertType.LOW_BLOOD_SUGAR
        assert alert.metric_name == "Blood Sugar"
        assert alert.value == "62 mg/dL"

    @pytest.mark.parametrize("value, expected", [
        (126, AlertType.HIGH_BLOOD_SUGAR),
        (125, None),
        (71, None),
        (70, AlertType.LOW_BLOOD_SUGAR),
    ])
    def test_fasting_boundaries(self, alert_engine, value, expected):
        reading = _reading(MetricKind.BLOOD_SUGAR, value, meal_context=MealContext.FASTING)
        alert = alert_engine.evaluate("user-1", reading)
        assert (alert.alert_type if alert else None) is expected

    def test_before_sleep_context_is_fasting(self, alert_engine):
        reading = _reading(
            MetricKind.BLOOD_SUGAR, 130,
            situation="Before Sleep", meal_context=MealContext.BEFORE_SLEEP,
        )
        assert alert_engine.evaluate("user-1", reading).metric_name == "Blood Sugar (Fasting)"

    def test_meal_context_overrides_situation(self, alert_engine):
        reading = _reading(
            MetricKind.BLOOD_SUGAR, 130,
            situation="Before Lunch", meal_context=MealContext.AFTER_MEAL,
        )
        assert alert_engine.evaluate("user-1", reading) is None


class TestIsFasting:
    @pytest.mark.parametrize("situation, expected", [
        ("Fasting", True),
        ("before breakfast", True),
        ("BEFORE DINNER", True),
        ("After Lunch", False),
        ("Between Meals", False),
        ("", False),
    ])
    def test_situation_fallback(self, situation, expected):
        assert is_fasting(_reading(MetricKind.BLOOD_SUGAR, 100, situation=situation)) is expected

    @pytest.mark.parametrize("context, expected", [
        (MealContext.FASTING, True),
        (MealContext.BEFORE_MEAL, True),
        (MealContext.BEFORE_SLEEP, True),
        (MealContext.AFTER_MEAL, False),
        (MealContext.BETWEEN_MEALS, False),
    ])
    def test_explicit_context(self, context, expected):
        assert is_fasting(_reading(MetricKind.BLOOD_SUGAR, 100, meal_context=context)) is expected


class TestAlertFields:
    def test_steps_never_alert(self, alert_engine):
        assert alert_engine.evaluate("user-1", _reading(MetricKind.STEPS, 50000)) is None

    def test_alert_carries_reading_time_and_detection_time(self, alert_engine, clock):
        alert = alert_engine.evaluate("user-9", _reading(MetricKind.HEART_RATE, 130, id="r-42"))
        assert alert.timestamp == READING_TIME
        assert alert.created_at == clock.now()
        assert alert.subject_id == "user-9"
        assert alert.reading_id == "r-42"
        assert alert.read is False
        assert alert.id

    def test_alert_ids_are_unique(self, alert_engine):
        reading = _reading(MetricKind.HEART_RATE, 130)
        assert alert_engine.evaluate("u", reading).id != alert_engine.evaluate("u", reading).id


class TestPreferences:
    def test_disabled_metric_yields_no_alert(self, clock):
        quiet = ThresholdAlertEngine(clock, AlertPreferences(heart_rate=False))
        assert quiet.evaluate("user-1", _reading(MetricKind.HEART_RATE, 150)) is None
        assert quiet.evaluate("user-1", _reading(MetricKind.BLOOD_PRESSURE, 150, 95)) is not None


class TestNonFiniteValues:
    @pytest.mark.parametrize("kind, value, secondary", [
        (MetricKind.HEART_RATE, float("nan"), None),
        (MetricKind.HEART_RATE, float("inf"), None),
        (MetricKind.BLOOD_SUGAR, float("-inf"), None),
        (MetricKind.BLOOD_PRESSURE, 150, float("nan")),
        (MetricKind.BLOOD_PRESSURE, float("inf"), 95),
    ])
    def test_skipped_without_raising(self, alert_engine, kind, value, secondary):
        assert alert_engine.evaluate("user-1", _reading(kind, value, secondary)) is None

    def test_batch_continues_past_non_finite(self, alert_engine):
        readings = [
            _reading(MetricKind.HEART_RATE, float("nan"), id="a"),
            _reading(MetricKind.HEART_RATE, 125, id="b"),
        ]
        assert [a.reading_id for a in alert_engine.evaluate_batch("user-1", readings)] == ["b"]

class TestEvaluateBatch:
    def test_order_preserved_and_one_alert_per_reading(self, alert_engine):
        readings = [
            _reading(MetricKind.HEART_RATE, 120, id="a", timestamp=READING_TIME),
            _reading(MetricKind.HEART_RATE, 72, id="b", timestamp=READING_TIME + timedelta(hours=1)),
            _reading(MetricKind.HEART_RATE, 40, id="c", timestamp=READING_TIME + timedelta(hours=2)),
        ]
        alerts = alert_engine.evaluate_batch("user-1", readings)
        assert [a.reading_id for a in alerts] == ["a", "c"]
        assert [a.alert_type for a in alerts] == [AlertType.HIGH_HEART_RATE, AlertType.LOW_HEART_RATE]

    def test_empty_batch(self, alert_engine):
        assert alert_engine.evaluate_batch("user-1", []) == []
