"""Synthetic vital-sign time series for a clinical profile and period.

The synthesizer walks a time axis from ``now - lookback`` to ``now`` at the
metric's sampling interval and, for every step, combines the profile
baseline with the temporal modulators, bounded uniform noise and (optionally)
an injected anomaly. Time arithmetic happens on absolute instants; hour of day
and weekday are read in the clock's timezone.

All sampled values come from one injected ``numpy.random.Generator``, so a
seeded generator plus a fixed clock reproduces the values of a series
exactly. Reading ids are always fresh uuid4s so that a re-seeded run never
collides with readings an earlier run already stored.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from datetime import datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

import numpy as np

from vitalsim.domains.health.domain_logic.models import (
    MealContext,
    MetricKind,
    Period,
    Profile,
    Reading,
    ReadingSource,
)
from vitalsim.domains.health.domain_logic.modulators import (
    DAYTIME_HOURS,
    circadian_factor,
    hours_since_last_meal,
    meal_context_for_hour,
    meal_decay,
    weekly_factor,
)
from vitalsim.domains.health.domain_logic.periods import (
    lookback,
    sampling_interval,
)
from vitalsim.domains.health.domain_logic.profiles import (
    DIABETIC_PROFILES,
    ProfileParameters,
    get_profile_parameters,
)

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import CancellationToken, ClockSource

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Anomaly and noise constants
# ---------------------------------------------------------------------------

ANOMALY_PROBABILITY = 0.05
STEPS_ANOMALY_PROBABILITY = 0.10
RESTING_PROBABILITY = 0.30  # share of daytime heart rate samples taken at rest

HIGH_HEART_RATE_RANGE = (110.0, 130.0)
LOW_HEART_RATE_RANGE = (40.0, 50.0)

HIGH_BP_RANGE = ((160.0, 180.0), (95.0, 110.0))
LOW_BP_RANGE = ((80.0, 90.0), (50.0, 60.0))
MIN_PULSE_PRESSURE = 30  # systolic - diastolic
PULSE_RANGE = (70, 100)  # [low, high)

DIABETIC_SUGAR_ANOMALY = (200.0, 300.0)
HIGH_SUGAR_ANOMALY = (160.0, 200.0)
LOW_SUGAR_ANOMALY = (40.0, 60.0)

HOURLY_STEPS_NOISE = (0.7, 1.3)
DAILY_STEPS_NOISE = (0.8, 1.2)
HIGH_STEPS_ANOMALY = (1.5, 2.0)
LOW_STEPS_ANOMALY = (0.1, 0.3)


class GenerationCancelled(Exception):
    """Raised when a cancellation token is set between samples."""


# ---------------------------------------------------------------------------
# Situation labels
# ---------------------------------------------------------------------------

def heart_rate_situation(hour: int) -> str:
    if hour < 6:
        return "Sleeping"
    if hour < 10:
        return "Morning Routine"
    if hour < 14:
        return "Daily Activity"
    if hour < 18:
        return "Afternoon"
    if hour < 22:
        return "Evening"
    return "Bedtime"


def blood_pressure_situation(hour: int) -> str:
    if hour < 10:
        return "Morning"
    if hour < 12:
        return "Before Lunch"
    if hour < 15:
        return "After Lunch"
    if hour < 18:
        return "Afternoon"
    if hour < 22:
        return "Evening"
    return "Before Sleep"


_BLOOD_SUGAR_LABELS = {
    7: "Before Breakfast",
    9: "After Breakfast",
    11: "Before Lunch",
    13: "After Lunch",
    17: "Before Dinner",
    19: "After Dinner",
}


def blood_sugar_situation(hour: int) -> str:
    if hour < 7:
        return "Fasting"
    if hour in _BLOOD_SUGAR_LABELS:
        return _BLOOD_SUGAR_LABELS[hour]
    if hour >= 21:
        return "Before Sleep"
    return "Between Meals"


# ---------------------------------------------------------------------------
# Synthesizer
# ---------------------------------------------------------------------------

class TimeSeriesSynthesizer:
    """Generates ordered reading sequences for one metric kind at a time.

    Usage::

        synth = TimeSeriesSynthesizer(SystemClock(), np.random.default_rng(7))
        readings = synth.generate("user-1", MetricKind.HEART_RATE,
                                  Profile.HEALTHY, Period.WEEK)

    A single instance is not meant to be shared across threads; give each
    worker its own generator (see ``pipeline.generate_batch``).
    """

    def __init__(
        self,
        clock: ClockSource,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._clock = clock
        self._rng = rng if rng is not None else np.random.default_rng()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(
        self,
        subject_id: str,
        metric_kind: MetricKind,
        profile: Profile,
        period: Period,
        include_anomalies: bool = True,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[Reading]:
        """Generate one series, oldest reading first.

        Raises:
            GenerationCancelled: If ``cancel_token`` is set mid-walk.
        """
        now = self._now()
        params = get_profile_parameters(profile)

        if metric_kind is MetricKind.STEPS and period is Period.DAY:
            readings = self._hourly_steps(subject_id, params, now, cancel_token)
        else:
            interval = sampling_interval(period, metric_kind)
            start = now.astimezone(timezone.utc) - lookback(period)
            sample = self._sampler(metric_kind)
            probability = self._anomaly_probability(metric_kind, include_anomalies)
            readings = [
                sample(subject_id, profile, params, ts, probability, now)
                for ts in self._walk(start, now, interval, cancel_token)
            ]

        logger.debug(
            "Generated %d %s readings for subject %s (profile=%s, period=%s, anomalies=%s)",
            len(readings),
            metric_kind.value,
            subject_id,
            profile.value,
            period.value,
            include_anomalies,
        )
        return readings

    # ------------------------------------------------------------------
    # Time axis
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        now = self._clock.now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    @staticmethod
    def _walk(
        start: datetime,
        end: datetime,
        interval: timedelta,
        cancel_token: CancellationToken | None,
    ) -> Iterator[datetime]:
        """Yield instants from ``start`` to ``end`` inclusive, in ``end``'s timezone."""
        tz = end.tzinfo
        current = start.astimezone(timezone.utc)
        stop = end.astimezone(timezone.utc)
        while current <= stop:
            if cancel_token is not None and cancel_token.is_set():
                raise GenerationCancelled(f"Generation cancelled at {current.isoformat()}")
            yield current.astimezone(tz)
            current += interval

    # ------------------------------------------------------------------
    # Randomness helpers
    # ------------------------------------------------------------------

    def _uniform(self, low: float, high: float) -> float:
        return float(self._rng.uniform(low, high))

    def _chance(self, probability: float) -> bool:
        return probability > 0 and float(self._rng.random()) < probability

    def _coin(self) -> bool:
        return bool(self._rng.integers(2))

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _anomaly_probability(metric_kind: MetricKind, include_anomalies: bool) -> float:
        if not include_anomalies:
            return 0.0
        if metric_kind is MetricKind.STEPS:
            return STEPS_ANOMALY_PROBABILITY
        return ANOMALY_PROBABILITY

    def _sampler(self, metric_kind: MetricKind):
        return {
            MetricKind.HEART_RATE: self._heart_rate,
            MetricKind.BLOOD_PRESSURE: self._blood_pressure,
            MetricKind.BLOOD_SUGAR: self._blood_sugar,
            MetricKind.STEPS: self._daily_steps,
        }[metric_kind]

    # ------------------------------------------------------------------
    # Per-metric samples
    # ------------------------------------------------------------------

    def _heart_rate(
        self,
        subject_id: str,
        profile: Profile,
        params: ProfileParameters,
        ts: datetime,
        anomaly_probability: float,
        now: datetime,
    ) -> Reading:
        hr = params.heart_rate
        hour = ts.hour
        value = (
            hr.base_bpm
            * circadian_factor(hour, MetricKind.HEART_RATE, activity_factor=hr.activity_factor, rng=self._rng)
            * weekly_factor(ts.weekday(), MetricKind.HEART_RATE)
        )
        value += self._uniform(-5.0, 5.0)

        if self._chance(anomaly_probability):
            value = self._uniform(*(HIGH_HEART_RATE_RANGE if self._coin() else LOW_HEART_RATE_RANGE))

        resting = hour not in DAYTIME_HOURS or self._chance(RESTING_PROBABILITY)
        return Reading(
            id=self._new_id(),
            subject_id=subject_id,
            metric_kind=MetricKind.HEART_RATE,
            primary_value=float(int(value)),
            timestamp=ts,
            situation="Resting" if resting else heart_rate_situation(hour),
            notes="Resting heart rate measurement" if resting else "",
            source=ReadingSource.SIMULATOR,
            created_at=now,
        )

    def _blood_pressure(
        self,
        subject_id: str,
        profile: Profile,
        params: ProfileParameters,
        ts: datetime,
        anomaly_probability: float,
        now: datetime,
    ) -> Reading:
        bp = params.blood_pressure
        hour = ts.hour
        pattern = circadian_factor(hour, MetricKind.BLOOD_PRESSURE)
        systolic = bp.base_systolic * pattern + self._uniform(-5.0, 5.0)
        diastolic = bp.base_diastolic * pattern + self._uniform(-4.0, 4.0)

        if self._chance(anomaly_probability):
            (sys_range, dia_range) = HIGH_BP_RANGE if self._coin() else LOW_BP_RANGE
            systolic = self._uniform(*sys_range)
            diastolic = self._uniform(*dia_range)

        systolic_mm = round(systolic)
        diastolic_mm = min(round(diastolic), systolic_mm - MIN_PULSE_PRESSURE)
        pulse = int(self._rng.integers(*PULSE_RANGE))

        return Reading(
            id=self._new_id(),
            subject_id=subject_id,
            metric_kind=MetricKind.BLOOD_PRESSURE,
            primary_value=float(systolic_mm),
            secondary_value=float(diastolic_mm),
            timestamp=ts,
            situation=blood_pressure_situation(hour),
            notes=f"Pulse: {pulse} BPM",
            pulse=pulse,
            source=ReadingSource.SIMULATOR,
            created_at=now,
        )

    def _blood_sugar(
        self,
        subject_id: str,
        profile: Profile,
        params: ProfileParameters,
        ts: datetime,
        anomaly_probability: float,
        now: datetime,
    ) -> Reading:
        bs = params.blood_sugar
        hour = ts.hour
        context = meal_context_for_hour(hour)

        if context is MealContext.FASTING:
            value = bs.base_fasting + self._uniform(-2.5, 2.5)
        elif context is MealContext.BEFORE_MEAL:
            value = bs.base_fasting + 5.0 + self._uniform(-5.0, 5.0)
        elif context is MealContext.AFTER_MEAL:
            value = bs.base_fasting + bs.post_meal_increase + self._uniform(-10.0, 10.0)
        else:
            decay = meal_decay(hours_since_last_meal(hour))
            value = bs.base_fasting + bs.post_meal_increase * decay + self._uniform(-7.5, 7.5)

        if self._chance(anomaly_probability):
            if profile in DIABETIC_PROFILES:
                value = self._uniform(*DIABETIC_SUGAR_ANOMALY)
            elif self._coin():
                value = self._uniform(*HIGH_SUGAR_ANOMALY)
            else:
                value = self._uniform(*LOW_SUGAR_ANOMALY)

        return Reading(
            id=self._new_id(),
            subject_id=subject_id,
            metric_kind=MetricKind.BLOOD_SUGAR,
            primary_value=float(int(value)),
            timestamp=ts,
            situation=blood_sugar_situation(hour),
            meal_context=context,
            source=ReadingSource.SIMULATOR,
            created_at=now,
        )

    def _daily_steps(
        self,
        subject_id: str,
        profile: Profile,
        params: ProfileParameters,
        ts: datetime,
        anomaly_probability: float,
        now: datetime,
    ) -> Reading:
        steps = params.steps
        steps_today = int(
            steps.daily_target
            * steps.consistency_factor
            * weekly_factor(ts.weekday(), MetricKind.STEPS)
            * self._uniform(*DAILY_STEPS_NOISE)
        )

        if self._chance(anomaly_probability):
            spread = HIGH_STEPS_ANOMALY if self._coin() else LOW_STEPS_ANOMALY
            steps_today = int(steps.daily_target * self._uniform(*spread))

        return Reading(
            id=self._new_id(),
            subject_id=subject_id,
            metric_kind=MetricKind.STEPS,
            primary_value=float(steps_today),
            timestamp=ts,
            situation="Daily",
            source=ReadingSource.SIMULATOR,
            created_at=now,
        )

    def _hourly_steps(
        self,
        subject_id: str,
        params: ProfileParameters,
        now: datetime,
        cancel_token: CancellationToken | None,
    ) -> list[Reading]:
        """One reading per local clock hour of the current day, carrying the running total.

        A day has 24 buckets, 23 when clocks spring forward and 25 when they
        fall back.
        """
        target = params.steps.daily_target
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        next_midnight = datetime.combine(midnight.date() + timedelta(days=1), time(0), tzinfo=now.tzinfo)
        last_hour = (next_midnight.astimezone(timezone.utc) - timedelta(hours=1)).astimezone(now.tzinfo)
        readings: list[Reading] = []
        cumulative = 0

        for ts in self._walk(midnight, last_hour, timedelta(hours=1), cancel_token):
            hour = ts.hour
            hourly_target = round(target * circadian_factor(hour, MetricKind.STEPS))
            added = round(hourly_target * self._uniform(*HOURLY_STEPS_NOISE))
            cumulative += added
            readings.append(Reading(
                id=self._new_id(),
                subject_id=subject_id,
                metric_kind=MetricKind.STEPS,
                primary_value=float(cumulative),
                timestamp=ts,
                situation="Daily",
                notes=f"Steps by {hour}:00 - Added {added} steps",
                increment=added,
                source=ReadingSource.SIMULATOR,
                created_at=now,
            ))

        return readings
