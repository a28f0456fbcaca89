"""Tests for the profile and period lookup tables."""

from __future__ import annotations

from datetime import timedelta

import pytest

from vitalsim.domains.health.domain_logic.models import MetricKind, Period, Profile
from vitalsim.domains.health.domain_logic.periods import (
    PERIOD_SPECS,
    expected_count,
    lookback,
    sampling_interval,
)
from vitalsim.domains.health.domain_logic.profiles import (
    DIABETIC_PROFILES,
    PROFILE_PARAMETERS,
    get_profile_parameters,
)


class TestProfiles:
    def test_every_profile_has_parameters(self):
        assert set(PROFILE_PARAMETERS) == set(Profile)

    def test_hypertensive_row(self):
        params = get_profile_parameters(Profile.HYPERTENSIVE)
        assert params.heart_rate.base_bpm == 75
        assert params.blood_pressure.base_systolic == 140
        assert params.blood_pressure.base_diastolic == 90
        assert params.steps.daily_target == 7000
        assert params.steps.consistency_factor == 0.5

    def test_active_row(self):
        params = get_profile_parameters(Profile.ACTIVE)
        assert params.heart_rate.activity_factor == 1.3
        assert params.steps.daily_target == 12000

    def test_diabetic_profiles(self):
        assert DIABETIC_PROFILES == {Profile.PRE_DIABETIC, Profile.DIABETIC}
        assert get_profile_parameters(Profile.DIABETIC).blood_sugar.base_fasting == 130

    def test_unknown_tag_rejected_at_boundary(self):
        with pytest.raises(ValueError):
            Profile("athletic")


class TestPeriods:
    def test_every_period_covers_every_metric(self):
        assert set(PERIOD_SPECS) == set(Period)
        for spec in PERIOD_SPECS.values():
            assert set(spec.intervals) == set(MetricKind)

    @pytest.mark.parametrize("period, days", [
        (Period.DAY, 1),
        (Period.WEEK, 7),
        (Period.MONTH, 30),
        (Period.THREE_MONTHS, 90),
        (Period.SIX_MONTHS, 180),
        (Period.YEAR, 365),
    ])
    def test_lookback(self, period, days):
        assert lookback(period) == timedelta(days=days)

    def test_sampling_intervals(self):
        assert sampling_interval(Period.DAY, MetricKind.HEART_RATE) == timedelta(minutes=30)
        assert sampling_interval(Period.SIX_MONTHS, MetricKind.BLOOD_PRESSURE) == timedelta(days=5)
        assert sampling_interval(Period.YEAR, MetricKind.BLOOD_SUGAR) == timedelta(days=2)
        assert sampling_interval(Period.DAY, MetricKind.STEPS) == timedelta(hours=1)
        assert sampling_interval(Period.MONTH, MetricKind.STEPS) == timedelta(days=1)

    def test_expected_count(self):
        assert expected_count(Period.THREE_MONTHS, MetricKind.BLOOD_PRESSURE) == 31
        assert expected_count(Period.SIX_MONTHS, MetricKind.HEART_RATE) == 361
        assert expected_count(Period.DAY, MetricKind.STEPS) == 24
