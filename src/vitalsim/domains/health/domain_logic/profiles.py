"""Baseline physiological constants per clinical profile.

Profiles are hand-tuned archetypes, not fitted to patient data. Adding a
profile means adding an enum member and a row to ``PROFILE_PARAMETERS``.
"""

from __future__ import annotations

from dataclasses import dataclass

from vitalsim.domains.health.domain_logic.models import Profile


@dataclass(frozen=True)
class HeartRateParameters:
    base_bpm: float
    activity_factor: float  # daytime elevation amplitude (1.0 = flat)


@dataclass(frozen=True)
class BloodPressureParameters:
    base_systolic: float
    base_diastolic: float


@dataclass(frozen=True)
class BloodSugarParameters:
    base_fasting: float       # mg/dL
    post_meal_increase: float  # mg/dL above fasting at the post-meal peak


@dataclass(frozen=True)
class StepsParameters:
    daily_target: int
    consistency_factor: float  # fraction of target typically reached


@dataclass(frozen=True)
class ProfileParameters:
    """All baseline constants for one profile."""

    heart_rate: HeartRateParameters
    blood_pressure: BloodPressureParameters
    blood_sugar: BloodSugarParameters
    steps: StepsParameters


def _row(
    hr: float,
    activity: float,
    systolic: float,
    diastolic: float,
    fasting: float,
    post_meal: float,
    steps: int,
    consistency: float,
) -> ProfileParameters:
    return ProfileParameters(
        heart_rate=HeartRateParameters(hr, activity),
        blood_pressure=BloodPressureParameters(systolic, diastolic),
        blood_sugar=BloodSugarParameters(fasting, post_meal),
        steps=StepsParameters(steps, consistency),
    )


# hr, activity, systolic, diastolic, fasting, post_meal, steps, consistency
PROFILE_PARAMETERS: dict[Profile, ProfileParameters] = {
    Profile.HEALTHY:          _row(65.0, 1.20, 115.0, 75.0,  85.0, 40.0, 10000, 0.8),
    Profile.ACTIVE:           _row(60.0, 1.30, 115.0, 75.0,  85.0, 40.0, 12000, 0.9),
    Profile.SEDENTARY:        _row(72.0, 1.10, 122.0, 78.0,  90.0, 45.0,  6000, 0.6),
    Profile.PRE_HYPERTENSIVE: _row(75.0, 1.15, 130.0, 85.0,  95.0, 50.0,  8000, 0.7),
    Profile.HYPERTENSIVE:     _row(75.0, 1.15, 140.0, 90.0,  95.0, 50.0,  7000, 0.5),
    Profile.PRE_DIABETIC:     _row(78.0, 1.10, 125.0, 80.0, 110.0, 60.0,  8000, 0.7),
    Profile.DIABETIC:         _row(78.0, 1.15, 135.0, 85.0, 130.0, 90.0,  7000, 0.5),
}

# Profiles whose blood sugar anomalies are always hyperglycemic
DIABETIC_PROFILES = frozenset({Profile.PRE_DIABETIC, Profile.DIABETIC})


def get_profile_parameters(profile: Profile) -> ProfileParameters:
    """Return the baseline constants for ``profile``."""
    return PROFILE_PARAMETERS[profile]
