"""Row models for the local health data bank."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoredReading:
    """A persisted reading.

    Numeric values and tags stay unencrypted for indexed time-series queries.
    Free text and auxiliary values (notes, pulse, hourly step increment) live
    in ``payload``, which is encrypted at rest.
    """

    id: str
    subject_id: str
    metric_kind: str  # 'heart_rate', 'blood_pressure', 'blood_sugar', 'steps'
    primary_value: float
    timestamp: str  # ISO 8601, UTC
    secondary_value: float | None = None
    situation: str = ""
    meal_context: str = "none"
    source: str = "simulator"
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""


@dataclass
class StoredAlert:
    """A persisted alert. ``read`` is the only column updated after insert."""

    id: str
    subject_id: str
    alert_type: str
    metric_name: str
    value: str
    timestamp: str  # ISO 8601, UTC; triggering reading's time
    read: bool = False
    created_at: str = ""
    reading_id: str = ""
