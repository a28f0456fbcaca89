"""Shared test fixtures for VitalSim tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

import numpy as np  # noqa: E402

from vitalsim.domains.health.connectors.providers import FixedClock  # noqa: E402

# Wednesday 2025-06-11 14:30 UTC
FIXED_NOW = datetime(2025, 6, 11, 14, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.delenv("RANDOM_SEED", raising=False)
    monkeypatch.setenv("TIMEZONE", "UTC")
    monkeypatch.setenv("SUBJECT_ID", "local-user")


# ---------------------------------------------------------------------------
# Time and randomness
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to FIXED_NOW."""
    return FixedClock(FIXED_NOW)


@pytest.fixture
def rng() -> np.random.Generator:
    """A seeded generator so every test run sees the same series."""
    return np.random.default_rng(20250611)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from vitalsim.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def payload_encryptor():
    """Create a PayloadEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from vitalsim.core.storage.encryption import PayloadEncryptor

    return PayloadEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def health_repository(health_db, payload_encryptor):
    """Create a HealthRepository backed by in-memory SQLite."""
    from vitalsim.core.storage.repository import HealthRepository

    return HealthRepository(health_db, payload_encryptor)
