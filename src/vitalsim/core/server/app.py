"""VitalSim MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

import numpy as np
from fastmcp import FastMCP

from vitalsim.core.config.settings import get_settings
from vitalsim.core.storage.database import HealthDatabase
from vitalsim.core.storage.encryption import EncryptionError, PayloadEncryptor
from vitalsim.core.storage.repository import HealthRepository
from vitalsim.domains.health.connectors import ClockSource
from vitalsim.domains.health.connectors.providers import (
    DiscardingSink,
    RepositoryAlertSink,
    RepositoryReadingSink,
    StaticSubjectSource,
    SystemClock,
)
from vitalsim.domains.health.domain_logic.models import AlertPreferences
from vitalsim.domains.health.tools.simulation_tools import register_simulation_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "VitalSim"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: HealthRepository | None = None,
    clock_override: ClockSource | None = None,
    seed_override: int | None = None,
) -> FastMCP:
    """Create and configure the VitalSim MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Builds the clock, subject source and random generator
    3. Initializes the encrypted storage layer (health data bank)
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Synthetic vital-sign generator with clinical threshold alerting. "
            "Generates heart rate, blood pressure, blood sugar and step series "
            "for a clinical profile and period, and flags out-of-range readings."
        ),
    )

    # --- Collaborators ---
    clock = clock_override if clock_override is not None else SystemClock(settings.timezone)
    subject_source = StaticSubjectSource(settings.subject_id)
    seed = seed_override if seed_override is not None else settings.random_seed
    rng = np.random.default_rng(seed)
    preferences = AlertPreferences(
        heart_rate=settings.alert_heart_rate,
        blood_pressure=settings.alert_blood_pressure,
        blood_sugar=settings.alert_blood_sugar,
    )

    # --- Initialize encrypted storage (health data bank) ---
    repository: HealthRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = PayloadEncryptor(settings.encryption_key)
            health_db = HealthDatabase(settings.db_path)
            health_db.initialize()
            repository = HealthRepository(health_db, encryptor)
            logger.info(
                "Health data bank initialized: %s (schema v%d, %d key(s))",
                settings.db_path,
                health_db.get_schema_version(),
                encryptor.key_count,
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence; generated readings will not be kept")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured; running without persistence. "
            "Set ENCRYPTION_KEY to enable the health data bank."
        )

    if repository is not None:
        reading_sink = RepositoryReadingSink(repository)
        alert_sink = RepositoryAlertSink(repository)
    else:
        reading_sink = DiscardingSink()
        alert_sink = DiscardingSink()

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "timezone": settings.timezone,
            "storage_enabled": repository is not None,
        }
        if repository is not None:
            status["readings_stored"] = repository.count_readings()
            status["unread_alerts"] = repository.count_unread_alerts(
                subject_source.current_subject_id()
            )
        else:
            status["readings_discarded"] = reading_sink.count
            status["alerts_discarded"] = alert_sink.count
        return status

    register_simulation_tools(
        server,
        clock=clock,
        subject_source=subject_source,
        rng=rng,
        reading_sink=reading_sink,
        alert_sink=alert_sink,
        preferences=preferences,
    )
    logger.info("Simulation tools registered")

    # --- Register storage-backed tools ---
    if repository is not None:
        from vitalsim.domains.health.domain_logic.pipeline import HealthPipeline
        from vitalsim.domains.health.domain_logic.series_analyzer import SeriesAnalyzer
        from vitalsim.domains.health.tools.alert_tools import register_alert_tools
        from vitalsim.domains.health.tools.manual_entry_tools import register_manual_entry_tools
        from vitalsim.domains.health.tools.series_tools import register_series_tools

        entry_pipeline = HealthPipeline(
            clock, reading_sink, alert_sink, rng=rng, preferences=preferences
        )
        register_manual_entry_tools(server, entry_pipeline, clock, subject_source)
        register_alert_tools(server, repository, subject_source)
        register_series_tools(server, SeriesAnalyzer(repository), clock, subject_source)
        logger.info("Manual entry, alert and summary tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
