"""Tests for environment-driven settings."""

from __future__ import annotations

from vitalsim.core.config.settings import get_settings


class TestSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.vitalsim_host == "127.0.0.1"
        assert settings.vitalsim_allow_insecure_bind is False
        assert settings.random_seed is None
        assert settings.alert_blood_sugar is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("VITALSIM_PORT", "9100")
        monkeypatch.setenv("RANDOM_SEED", "42")
        monkeypatch.setenv("TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("ALERT_HEART_RATE", "false")

        settings = get_settings()
        assert settings.vitalsim_port == 9100
        assert settings.random_seed == 42
        assert settings.timezone == "Europe/Berlin"
        assert settings.alert_heart_rate is False
