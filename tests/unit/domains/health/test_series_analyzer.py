"""Tests for series summaries (average / max / min / direction)."""

from __future__ import annotations

from datetime import timedelta

from vitalsim.domains.health.connectors.providers import reading_to_row
from vitalsim.domains.health.domain_logic.models import MetricKind, Period, Profile, Reading
from vitalsim.domains.health.domain_logic.series_analyzer import (
    SeriesAnalyzer,
    hourly_increments,
    summarize_series,
)
from vitalsim.domains.health.domain_logic.synthesizer import TimeSeriesSynthesizer


def _series(clock, kind: MetricKind, values: list[float], secondary: list[float] | None = None):
    start = clock.now() - timedelta(hours=len(values))
    return [
        Reading(
            id=f"r-{i}",
            subject_id="user-1",
            metric_kind=kind,
            primary_value=value,
            secondary_value=secondary[i] if secondary else None,
            timestamp=start + timedelta(hours=i),
        )
        for i, value in enumerate(values)
    ]


class TestSummarizeSeries:
    def test_empty(self):
        assert summarize_series([]) == {"data_points": 0, "status": "no_data"}

    def test_basic_stats(self, clock):
        summary = summarize_series(_series(clock, MetricKind.HEART_RATE, [60, 70, 80, 90]))
        assert summary["metric_kind"] == "heart_rate"
        assert summary["data_points"] == 4
        assert summary["average"] == 75.0
        assert summary["max"] == 90
        assert summary["min"] == 60
        assert summary["latest"] == 90
        assert summary["direction"] == "increasing"

    def test_direction(self, clock):
        assert summarize_series(_series(clock, MetricKind.HEART_RATE, [90, 80, 70, 60]))["direction"] == "decreasing"
        assert summarize_series(_series(clock, MetricKind.HEART_RATE, [70, 71, 70, 71]))["direction"] == "stable"
        assert summarize_series(_series(clock, MetricKind.HEART_RATE, [70]))["direction"] == "insufficient_data"

    def test_unordered_input_is_sorted(self, clock):
        readings = _series(clock, MetricKind.HEART_RATE, [60, 70, 80, 90])
        assert summarize_series(list(reversed(readings)))["latest"] == 90

    def test_blood_pressure_includes_diastolic(self, clock):
        summary = summarize_series(
            _series(clock, MetricKind.BLOOD_PRESSURE, [120, 130], secondary=[80, 84])
        )
        assert summary["diastolic"] == {"average": 82.0, "max": 84, "min": 80, "latest": 84}

    def test_hourly_steps_use_increments(self, clock, rng):
        synth = TimeSeriesSynthesizer(clock, rng)
        readings = synth.generate("user-1", MetricKind.STEPS, Profile.ACTIVE, Period.DAY)
        summary = summarize_series(readings)
        increments = [r.increment for r in readings]
        assert summary["total"] == readings[-1].primary_value
        assert summary["max"] == max(increments)
        assert summary["min"] == min(increments)


class TestHourlyIncrements:
    def test_derived_from_running_total(self, clock):
        readings = _series(clock, MetricKind.STEPS, [100, 250, 250, 600])
        assert hourly_increments(readings) == [100, 150, 0, 350]


class TestSeriesAnalyzer:
    def test_no_stored_data(self, health_repository):
        summary = SeriesAnalyzer(health_repository).summarize("user-1", MetricKind.BLOOD_SUGAR)
        assert summary["data_points"] == 0
        assert summary["metric_kind"] == "blood_sugar"

    def test_summarizes_stored_readings(self, health_repository, clock):
        for reading in _series(clock, MetricKind.HEART_RATE, [60, 64, 68, 72]):
            health_repository.save_reading(reading_to_row(reading))
        health_repository.save_reading(reading_to_row(Reading(
            id="other", subject_id="user-1", metric_kind=MetricKind.BLOOD_SUGAR,
            primary_value=99, timestamp=clock.now(),
        )))

        summary = SeriesAnalyzer(health_repository).summarize("user-1", MetricKind.HEART_RATE)
        assert summary["data_points"] == 4
        assert summary["average"] == 66.0
        assert summary["latest"] == 72

    def test_since_filter(self, health_repository, clock):
        for reading in _series(clock, MetricKind.HEART_RATE, [60, 64, 68, 72]):
            health_repository.save_reading(reading_to_row(reading))

        summary = SeriesAnalyzer(health_repository).summarize(
            "user-1", MetricKind.HEART_RATE, since=clock.now() - timedelta(hours=2)
        )
        assert summary["data_points"] == 2
