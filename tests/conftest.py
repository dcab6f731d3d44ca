"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from anxiety_engine.config import Settings
from anxiety_engine.scoring.models import (
    Baseline,
    BaselineProfile,
    LifestyleSnapshot,
    PhysioSample,
)

NOW = datetime(2026, 3, 2, 12, 0, 0)


class FakeClock:
    """Manually advanced clock for deterministic sessions."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Defaults only; ignores any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def calibrated_profile() -> BaselineProfile:
    updated = NOW - timedelta(hours=1)
    return BaselineProfile(
        hr=Baseline(mean=62.0, sd=6.0, last_updated=updated, observation_count=10),
        hrv=Baseline(mean=55.0, sd=12.0, last_updated=updated, observation_count=10),
        rr=Baseline(mean=14.0, sd=2.0, last_updated=updated, observation_count=10),
        eda=Baseline(mean=1.2, sd=0.6, last_updated=updated, observation_count=10),
        temp=Baseline(mean=0.0, sd=0.6, last_updated=updated, observation_count=10),
    )


@pytest.fixture
def resting_sample() -> PhysioSample:
    """Sample sitting exactly on the calibrated baseline means, no motion."""
    return PhysioSample(
        hr=62.0,
        hrv=55.0,
        rr=14.0,
        eda_peaks_per_min=1.2,
        skin_temp_delta=0.0,
        motion_score=0.0,
        timestamp=NOW,
    )


@pytest.fixture
def stressed_sample() -> PhysioSample:
    """Elevated HR, suppressed HRV, fast breathing, EDA peaks, cooling skin."""
    return PhysioSample(
        hr=86.0,  # z = 4
        hrv=25.0,  # z = -2.5
        rr=21.0,  # delta 7
        eda_peaks_per_min=5.5,  # delta 4.3
        skin_temp_delta=-2.5,
        motion_score=0.5,
        timestamp=NOW,
    )


@pytest.fixture
def default_lifestyle() -> LifestyleSnapshot:
    return LifestyleSnapshot()
