"""Temporal modulators: time-of-day, day-of-week and meal-relative factors.

All functions are total over their inputs and have no side effects. The only
source of variation is an optional ``numpy.random.Generator`` passed in by the
caller; without one the night-time heart rate factor uses its midpoint.
"""

from __future__ import annotations

import numpy as np

from vitalsim.domains.health.domain_logic.models import MealContext, MetricKind

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DAYTIME_HOURS = range(8, 21)  # 08:00-20:59
HEART_RATE_PEAK_HOUR = 13
HEART_RATE_PEAK_WIDTH = 10.0
NIGHT_HEART_RATE_FLOOR = 0.85
NIGHT_HEART_RATE_SPREAD = 0.10

# Share of the daily step target walked in each hour; sums to 1.0
HOURLY_ACTIVITY_SHARE: tuple[float, ...] = (
    0.01, 0.01, 0.01, 0.01, 0.01, 0.01,  # 00-05 asleep
    0.04,                                # 06 waking up
    0.08,                                # 07 morning routine
    0.06,                                # 08 commute
    0.04, 0.04, 0.04,                    # 09-11 morning work
    0.07,                                # 12 lunch break
    0.04, 0.04, 0.04, 0.04,              # 13-16 afternoon work
    0.08,                                # 17 commute home
    0.10,                                # 18 evening activity
    0.08,                                # 19 dinner
    0.06,                                # 20 post dinner
    0.04,                                # 21 winding down
    0.03,                                # 22 getting ready for bed
    0.02,                                # 23
)

BEFORE_MEAL_HOURS = frozenset({7, 11, 17})
AFTER_MEAL_HOURS = frozenset({9, 13, 19})
BEDTIME_HOUR = 21
MEAL_DECAY_HOURS = 3.0

SATURDAY, SUNDAY = 5, 6
MONDAY, FRIDAY = 0, 4


# ---------------------------------------------------------------------------
# Circadian
# ---------------------------------------------------------------------------

def _heart_rate_circadian(
    hour: int, activity_factor: float, rng: np.random.Generator | None
) -> float:
    if hour in DAYTIME_HOURS:
        peak = 1.0 - abs(hour - HEART_RATE_PEAK_HOUR) / HEART_RATE_PEAK_WIDTH
        return 1.0 + peak * (activity_factor - 1.0)
    if rng is None:
        return NIGHT_HEART_RATE_FLOOR + NIGHT_HEART_RATE_SPREAD / 2
    return NIGHT_HEART_RATE_FLOOR + float(rng.random()) * NIGHT_HEART_RATE_SPREAD


def _blood_pressure_circadian(hour: int) -> float:
    if 6 <= hour <= 10:
        return 1.05  # morning surge
    if 11 <= hour <= 18:
        return 1.0
    if 19 <= hour <= 22:
        return 0.98
    return 0.92  # nocturnal dip


def circadian_factor(
    hour_of_day: int,
    metric_kind: MetricKind,
    *,
    activity_factor: float = 1.0,
    rng: np.random.Generator | None = None,
) -> float:
    """Time-of-day multiplier for ``metric_kind``.

    For steps the result is the hour's share of the daily total rather than a
    multiplier around 1.0. Blood sugar follows meals instead and returns 1.0.
    """
    hour = hour_of_day % 24
    if metric_kind is MetricKind.HEART_RATE:
        return _heart_rate_circadian(hour, activity_factor, rng)
    if metric_kind is MetricKind.BLOOD_PRESSURE:
        return _blood_pressure_circadian(hour)
    if metric_kind is MetricKind.STEPS:
        return HOURLY_ACTIVITY_SHARE[hour]
    return 1.0


# ---------------------------------------------------------------------------
# Weekly
# ---------------------------------------------------------------------------

def weekly_factor(day_of_week: int, metric_kind: MetricKind) -> float:
    """Day-of-week multiplier. ``day_of_week`` follows ``date.weekday()`` (Monday=0)."""
    day = day_of_week % 7
    weekend = day in (SATURDAY, SUNDAY)
    if metric_kind is MetricKind.HEART_RATE:
        return 0.95 if weekend else 1.05
    if metric_kind is MetricKind.STEPS:
        if weekend:
            return 0.8
        if day in (MONDAY, FRIDAY):
            return 0.95
        return 1.0
    return 1.0


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------

def meal_decay(hours_since_last_meal: float) -> float:
    """Fraction of the post-meal rise still present: 1.0 at the meal, 0.0 after 3h."""
    remaining = (MEAL_DECAY_HOURS - hours_since_last_meal) / MEAL_DECAY_HOURS
    return max(0.0, min(1.0, remaining))


def hours_since_last_meal(hour_of_day: int) -> int:
    """Hours since the nearest preceding post-meal reading hour (9, 13 or 19).

    Hours that do not follow a meal window default to 3, i.e. fully decayed.
    """
    hour = hour_of_day % 24
    if 10 <= hour <= 11:
        return hour - 9
    if 14 <= hour <= 16:
        return hour - 13
    if 20 <= hour <= 23:
        return hour - 19
    return 3


def meal_context_for_hour(hour_of_day: int) -> MealContext:
    """Classify an hour into its blood sugar meal context."""
    hour = hour_of_day % 24
    if hour < 7:
        return MealContext.FASTING
    if hour in BEFORE_MEAL_HOURS:
        return MealContext.BEFORE_MEAL
    if hour in AFTER_MEAL_HOURS:
        return MealContext.AFTER_MEAL
    if hour >= BEDTIME_HOUR:
        return MealContext.BEFORE_SLEEP
    return MealContext.BETWEEN_MEALS
