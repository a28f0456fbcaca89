"""Lookback windows and per-metric sampling cadences for each period."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from vitalsim.domains.health.domain_logic.models import MetricKind, Period

_H = timedelta(hours=1)
_D = timedelta(days=1)


@dataclass(frozen=True)
class PeriodSpec:
    """Lookback duration plus the sampling interval of every metric kind."""

    lookback: timedelta
    intervals: dict[MetricKind, timedelta]

    def interval_for(self, metric_kind: MetricKind) -> timedelta:
        return self.intervals[metric_kind]


def _spec(lookback: timedelta, hr: timedelta, bp: timedelta, bs: timedelta, steps: timedelta) -> PeriodSpec:
    return PeriodSpec(
        lookback=lookback,
        intervals={
            MetricKind.HEART_RATE: hr,
            MetricKind.BLOOD_PRESSURE: bp,
            MetricKind.BLOOD_SUGAR: bs,
            MetricKind.STEPS: steps,
        },
    )


PERIOD_SPECS: dict[Period, PeriodSpec] = {
    #                                   heart rate       blood pressure  blood sugar  steps
    Period.DAY:          _spec(1 * _D,   timedelta(minutes=30), 6 * _H,  3 * _H,  1 * _H),
    Period.WEEK:         _spec(7 * _D,   2 * _H,                12 * _H, 6 * _H,  1 * _D),
    Period.MONTH:        _spec(30 * _D,  6 * _H,                1 * _D,  12 * _H, 1 * _D),
    Period.THREE_MONTHS: _spec(90 * _D,  12 * _H,               3 * _D,  1 * _D,  1 * _D),
    Period.SIX_MONTHS:   _spec(180 * _D, 12 * _H,               5 * _D,  1 * _D,  1 * _D),
    Period.YEAR:         _spec(365 * _D, 1 * _D,                7 * _D,  2 * _D,  1 * _D),
}

# Hourly steps cover the local calendar day: 00:00 through 23:00 (24 buckets
# except on DST change days)
HOURLY_STEPS_LOOKBACK = 23 * _H


def lookback(period: Period) -> timedelta:
    return PERIOD_SPECS[period].lookback


def sampling_interval(period: Period, metric_kind: MetricKind) -> timedelta:
    return PERIOD_SPECS[period].interval_for(metric_kind)


def expected_count(period: Period, metric_kind: MetricKind) -> int:
    """Number of readings a full walk produces: ``floor(D / I) + 1``."""
    if metric_kind is MetricKind.STEPS and period is Period.DAY:
        span = HOURLY_STEPS_LOOKBACK
    else:
        span = lookback(period)
    return span // sampling_interval(period, metric_kind) + 1
