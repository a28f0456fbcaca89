"""Argument parsing shared by the MCP tools."""

from __future__ import annotations

import enum
import json
from datetime import datetime
from typing import TypeVar

E = TypeVar("E", bound=enum.Enum)


def parse_enum(enum_cls: type[E], value: str, name: str) -> E:
    """Convert a tool argument to ``enum_cls``.

    Raises:
        ValueError: With the accepted values listed, if ``value`` is unknown.
    """
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {name} {value!r}; expected one of: {choices}") from None


def parse_timestamp(value: str, default: datetime) -> datetime:
    """Parse an ISO 8601 timestamp; naive values take ``default``'s timezone."""
    if not value:
        return default
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid timestamp {value!r}; expected ISO 8601") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default.tzinfo)
    return parsed


def error_response(message: str) -> str:
    return json.dumps({"status": "error", "message": message})
