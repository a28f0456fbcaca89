"""MCP tools for reviewing stored alerts."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from vitalsim.domains.health.connectors.providers import row_to_alert

if TYPE_CHECKING:
    from vitalsim.core.storage.repository import HealthRepository
    from vitalsim.domains.health.connectors import SubjectSource

logger = logging.getLogger(__name__)


def register_alert_tools(
    mcp: FastMCP,
    repository: HealthRepository,
    subject_source: SubjectSource,
) -> None:
    """Register alert listing and acknowledgement tools on the MCP server."""

    @mcp.tool
    async def list_alerts(
        ctx: Context,
        unread_only: bool = False,
        limit: int = 50,
        subject_id: str = "",
    ) -> str:
        """List stored health alerts, most recent reading first.

        Args:
            unread_only: Only return alerts that have not been marked read.
            limit: Maximum number of alerts to return.
            subject_id: Subject whose alerts to list. Defaults to the configured subject.
        """
        subject = subject_id or subject_source.current_subject_id()
        alerts = [
            row_to_alert(row)
            for row in repository.get_alerts(subject, unread_only=unread_only, limit=limit)
        ]
        return json.dumps({
            "status": "ok",
            "subject_id": subject,
            "count": len(alerts),
            "unread": repository.count_unread_alerts(subject),
            "alerts": [a.to_dict() for a in alerts],
        }, indent=2)

    @mcp.tool
    async def mark_alert_read(ctx: Context, alert_id: str) -> str:
        """Mark an alert as read.

        Args:
            alert_id: Id of the alert, as returned by list_alerts.
        """
        if not repository.mark_alert_read(alert_id):
            return json.dumps({"status": "not_found", "alert_id": alert_id})
        logger.info("Alert %s marked read", alert_id)
        return json.dumps({"status": "ok", "alert_id": alert_id, "read": True})
