"""MCP tools for summarizing stored reading history."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitalsim.domains.health.domain_logic.models import MetricKind
from vitalsim.domains.health.tools.arguments import error_response, parse_enum

if TYPE_CHECKING:
    from vitalsim.domains.health.connectors import ClockSource, SubjectSource
    from vitalsim.domains.health.domain_logic.series_analyzer import SeriesAnalyzer

logger = logging.getLogger(__name__)


def register_series_tools(
    mcp: FastMCP,
    analyzer: SeriesAnalyzer,
    clock: ClockSource,
    subject_source: SubjectSource,
) -> None:
    """Register reading-history summary tools on the MCP server."""

    @mcp.tool
    async def summarize_readings(
        ctx: Context,
        metric_kind: str,
        days: int = 7,
        subject_id: str = "",
    ) -> str:
        """Average, maximum, minimum and trend of stored readings.

        Args:
            metric_kind: 'heart_rate', 'blood_pressure', 'blood_sugar' or 'steps'.
            days: Number of days to look back (default: 7).
            subject_id: Subject to summarize. Defaults to the configured subject.
        """
        try:
            kind = parse_enum(MetricKind, metric_kind, "metric_kind")
        except ValueError as exc:
            return error_response(str(exc))
        if days < 1:
            return error_response("days must be at least 1")

        subject = subject_id or subject_source.current_subject_id()
        since = clock.now() - timedelta(days=days)
        summary = analyzer.summarize(subject, kind, since=since)
        return json.dumps({
            "status": "ok" if summary["data_points"] else "no_data",
            "subject_id": subject,
            "days": days,
            "summary": summary,
        }, indent=2)
