"""Process entry point: ``vitalsim`` or ``python -m vitalsim.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from vitalsim.core.config.settings import Settings, get_settings
from vitalsim.core.server.app import create_app

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOOPBACK_NAMES = frozenset({"localhost", "ip6-localhost"})


def _is_loopback_host(host: str) -> bool:
    if host in _LOOPBACK_NAMES:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.vitalsim_log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def _ensure_safe_bind(settings: Settings) -> None:
    """Only loopback binds are allowed unless explicitly overridden."""
    host = settings.vitalsim_host
    if _is_loopback_host(host):
        return
    if not settings.vitalsim_allow_insecure_bind:
        raise RuntimeError(
            f"Refusing to expose health tools on {host}: no auth layer is configured. "
            "Set VITALSIM_ALLOW_INSECURE_BIND=true to bind anyway."
        )
    logger.warning("Binding to non-loopback host %s with no authentication", host)


def run() -> None:
    settings = get_settings()
    _configure_logging(settings)
    _ensure_safe_bind(settings)

    app = create_app()
    logger.info(
        "VitalSim listening on http://%s:%d (timezone %s)",
        settings.vitalsim_host,
        settings.vitalsim_port,
        settings.timezone,
    )
    app.run(transport="streamable-http", host=settings.vitalsim_host, port=settings.vitalsim_port)


if __name__ == "__main__":
    run()
