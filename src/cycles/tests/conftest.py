"""Shared fixtures for cycle engine tests."""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path

import pytest

from src.cycles.base import DailyObservation
from src.cycles.config_loader import EngineConfig, load_engine_config
from src.cycles.tests.factories import START, build_log

# Fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine_config() -> EngineConfig:
    """Load the real engine config for tests."""
    return load_engine_config()


# ---------------------------------------------------------------------------
# JSON fixture loaders
# ---------------------------------------------------------------------------


@pytest.fixture
def diary_records() -> list[dict]:
    return json.loads((FIXTURES_DIR / "diary_records.json").read_text())


# ---------------------------------------------------------------------------
# Diary fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def regular_log() -> list[DailyObservation]:
    """Three 28-day cycles with agreeing mucus + pain, then 10 days of an ongoing cycle."""
    return build_log(
        [
            {"length": 28, "peak_mucus_day": 13, "pain_day": 14},
            {"length": 28, "peak_mucus_day": 13, "pain_day": 14},
            {"length": 28, "peak_mucus_day": 13, "pain_day": 14},
            {"length": 28, "logged_days": 10},
        ]
    )


@pytest.fixture
def regular_log_as_of() -> date:
    """Cycle day 10 of the ongoing cycle in ``regular_log``."""
    return START + timedelta(days=84 + 9)
