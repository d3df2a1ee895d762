"""Pytest fixtures for wellness-labs tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import numpy as np
import pytest

from wellness_labs.core.config import CognitionConfig, Settings
from wellness_labs.core.scheduler import Scheduler


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def scheduler() -> Scheduler:
    """Fresh virtual-clock scheduler at t=0."""
    return Scheduler()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def test_settings() -> Settings:
    """Default settings."""
    return Settings()


@pytest.fixture
def cognition_config() -> CognitionConfig:
    """Default cognition configuration."""
    return CognitionConfig()


@pytest.fixture
def battery(scheduler: Scheduler, cognition_config: CognitionConfig, rng):
    """Cognition battery on the shared scheduler."""
    from wellness_labs.labs.cognition import CognitionBattery

    return CognitionBattery(scheduler, cognition_config, rng)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep environment overrides out of the config defaults."""
    monkeypatch.delenv("WELLNESS_LABS_FABRICATE_MISSING", raising=False)
    monkeypatch.delenv("WELLNESS_LABS_LOG_LEVEL", raising=False)
