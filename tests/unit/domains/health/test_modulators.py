"""Tests for the temporal modulators."""

from __future__ import annotations

import math

import numpy as np
import pytest

from vitalsim.domains.health.domain_logic.models import MealContext, MetricKind
from vitalsim.domains.health.domain_logic.modulators import (
    HOURLY_ACTIVITY_SHARE,
    circadian_factor,
    hours_since_last_meal,
    meal_context_for_hour,
    meal_decay,
    weekly_factor,
)


class TestCircadianFactor:
    def test_heart_rate_peaks_at_one_pm(self):
        assert circadian_factor(13, MetricKind.HEART_RATE, activity_factor=1.2) == pytest.approx(1.2)

    def test_heart_rate_daytime_formula(self):
        # 1 + (1 - |8 - 13| / 10) * 0.2
        assert circadian_factor(8, MetricKind.HEART_RATE, activity_factor=1.2) == pytest.approx(1.1)
        assert circadian_factor(20, MetricKind.HEART_RATE, activity_factor=1.2) == pytest.approx(1.06)

    def test_heart_rate_night_midpoint_without_rng(self):
        assert circadian_factor(3, MetricKind.HEART_RATE) == pytest.approx(0.90)

    def test_heart_rate_night_with_rng(self):
        rng = np.random.default_rng(1)
        values = [circadian_factor(2, MetricKind.HEART_RATE, rng=rng) for _ in range(200)]
        assert all(0.85 <= v < 0.95 for v in values)
        assert len(set(values)) > 1

    @pytest.mark.parametrize("hour, expected", [
        (5, 0.92), (6, 1.05), (10, 1.05), (11, 1.0), (18, 1.0), (19, 0.98), (22, 0.98), (23, 0.92),
    ])
    def test_blood_pressure(self, hour, expected):
        assert circadian_factor(hour, MetricKind.BLOOD_PRESSURE) == expected

    def test_steps_shares_sum_to_one(self):
        assert len(HOURLY_ACTIVITY_SHARE) == 24
        assert math.isclose(sum(HOURLY_ACTIVITY_SHARE), 1.0)
        assert sum(circadian_factor(h, MetricKind.STEPS) for h in range(24)) == pytest.approx(1.0)

    def test_blood_sugar_is_flat(self):
        assert {circadian_factor(h, MetricKind.BLOOD_SUGAR) for h in range(24)} == {1.0}


class TestWeeklyFactor:
    def test_heart_rate(self):
        assert [weekly_factor(d, MetricKind.HEART_RATE) for d in range(7)] == [
            1.05, 1.05, 1.05, 1.05, 1.05, 0.95, 0.95,
        ]

    def test_steps(self):
        assert [weekly_factor(d, MetricKind.STEPS) for d in range(7)] == [
            0.95, 1.0, 1.0, 1.0, 0.95, 0.8, 0.8,
        ]

    @pytest.mark.parametrize("kind", [MetricKind.BLOOD_PRESSURE, MetricKind.BLOOD_SUGAR])
    def test_other_metrics_flat(self, kind):
        assert {weekly_factor(d, kind) for d in range(7)} == {1.0}


class TestMeals:
    @pytest.mark.parametrize("hours, expected", [
        (0, 1.0), (1, 2 / 3), (1.5, 0.5), (3, 0.0), (5, 0.0), (-1, 1.0),
    ])
    def test_meal_decay_clamped(self, hours, expected):
        assert meal_decay(hours) == pytest.approx(expected)

    @pytest.mark.parametrize("hour, expected", [
        (10, 1), (11, 2), (14, 1), (16, 3), (20, 1), (23, 4), (3, 3), (8, 3),
    ])
    def test_hours_since_last_meal(self, hour, expected):
        assert hours_since_last_meal(hour) == expected

    @pytest.mark.parametrize("hour, expected", [
        (0, MealContext.FASTING),
        (6, MealContext.FASTING),
        (7, MealContext.BEFORE_MEAL),
        (9, MealContext.AFTER_MEAL),
        (10, MealContext.BETWEEN_MEALS),
        (17, MealContext.BEFORE_MEAL),
        (19, MealContext.AFTER_MEAL),
        (21, MealContext.BEFORE_SLEEP),
        (23, MealContext.BEFORE_SLEEP),
    ])
    def test_meal_context_for_hour(self, hour, expected):
        assert meal_context_for_hour(hour) is expected
