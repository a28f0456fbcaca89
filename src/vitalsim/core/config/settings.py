"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """VitalSim server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    vitalsim_host: str = "127.0.0.1"
    vitalsim_port: int = 8011
    vitalsim_log_level: str = "info"
    vitalsim_allow_insecure_bind: bool = False

    # Storage (health data bank)
    db_path: str = "~/.vitalsim/health.db"

    # Encryption: comma-separated Fernet keys, primary first
    encryption_key: str = ""

    # Simulation
    timezone: str = "UTC"
    subject_id: str = "local-user"
    random_seed: int | None = None

    # Alert preferences
    alert_heart_rate: bool = True
    alert_blood_pressure: bool = True
    alert_blood_sugar: bool = True


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
