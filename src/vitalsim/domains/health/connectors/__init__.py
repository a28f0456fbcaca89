"""Collaborator interfaces consumed by the synthesis and alerting core.

The core never talks to a database, a wall clock or an auth layer directly;
it calls these interfaces, and callers inject implementations (see
``providers``).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vitalsim.domains.health.domain_logic.models import Alert, Reading


@runtime_checkable
class ReadingSink(Protocol):
    """Persists readings. ``store`` raises on failure."""

    async def store(self, reading: Reading) -> None:
        ...


@runtime_checkable
class AlertSink(Protocol):
    """Persists alerts. ``store`` raises on failure."""

    async def store(self, alert: Alert) -> None:
        ...


@runtime_checkable
class ClockSource(Protocol):
    """Source of "now". Must return a timezone-aware datetime."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class SubjectSource(Protocol):
    """Resolves the subject (user) whose data is being generated."""

    def current_subject_id(self) -> str:
        ...


@runtime_checkable
class CancellationToken(Protocol):
    """Anything with ``is_set()``; ``threading.Event`` qualifies."""

    def is_set(self) -> bool:
        ...
