"""Synthetic wearable feed for demos and the ``simulate`` CLI command.

Starts from a plausible resting profile and perturbs each signal with a
bounded random walk per tick.  Low-motion ticks fall into rest windows, so
a long enough run also exercises baseline adaptation.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta

import structlog

from anxiety_engine.config import Settings
from anxiety_engine.scoring.models import (
    Baseline,
    BaselineProfile,
    CyclePhase,
    LifestyleSnapshot,
    PhysioSample,
    ScoreReport,
)
from anxiety_engine.scoring.session import ScoringSession

logger = structlog.get_logger(__name__)

# (low, high) step per tick
_STEP = {
    "hr": (-2.0, 3.0),
    "hrv": (-4.0, 4.0),
    "rr": (-0.4, 0.6),
    "eda_peaks_per_min": (-0.5, 0.8),
    "skin_temp_delta": (-0.1, 0.1),
    "motion_score": (-0.1, 0.15),
}


def demo_baselines(now: datetime) -> BaselineProfile:
    """A calibrated profile last updated an hour before ``now``."""
    updated = now - timedelta(hours=1)
    return BaselineProfile(
        hr=Baseline(mean=62.0, sd=6.0, last_updated=updated),
        hrv=Baseline(mean=55.0, sd=12.0, last_updated=updated),
        rr=Baseline(mean=14.0, sd=2.0, last_updated=updated),
        eda=Baseline(mean=1.2, sd=0.6, last_updated=updated),
        temp=Baseline(mean=0.0, sd=0.6, last_updated=updated),
    )


def demo_sample(now: datetime) -> PhysioSample:
    return PhysioSample(
        hr=74.0,
        hrv=48.0,
        rr=15.0,
        eda_peaks_per_min=2.0,
        skin_temp_delta=-0.6,
        motion_score=0.2,
        timestamp=now,
    )


def demo_lifestyle() -> LifestyleSnapshot:
    return LifestyleSnapshot(
        sleep_debt_hours=1.0,
        sleep_efficiency=85.0,
        bedtime_shift_minutes=60.0,
        caffeine_mg_after_2pm=120.0,
        alcohol_units_after_8pm=1,
        activity_minutes=35.0,
        vigorous_minutes=20.0,
        workload_hours=7.0,
        self_care_minutes=18.0,
        has_cycle_data=True,
        cycle_phase=CyclePhase.LUTEAL,
        post_11pm_screen_minutes=40.0,
        daytime_screen_hours=6.5,
        sugary_items=1,
        water_glasses=6,
    )


def random_walk_step(sample: PhysioSample, rng: random.Random, now: datetime) -> PhysioSample:
    """Perturb every signal of ``sample`` by one bounded random step."""
    values = {name: getattr(sample, name) + rng.uniform(lo, hi) for name, (lo, hi) in _STEP.items()}
    values["eda_peaks_per_min"] = max(0.0, values["eda_peaks_per_min"])
    values["motion_score"] = min(1.0, max(0.0, values["motion_score"]))
    return sample.model_copy(update={**values, "timestamp": now})


def simulate(
    ticks: int,
    *,
    seed: int | None = None,
    interval: timedelta = timedelta(minutes=1),
    start: datetime | None = None,
    settings: Settings | None = None,
) -> tuple[ScoringSession, list[ScoreReport]]:
    """Drive a demo session through ``ticks`` random-walk samples.

    The session clock advances by ``interval`` per tick, so check-in decay
    and rest-window debouncing behave as in real time.
    """
    rng = random.Random(seed)
    current = start or datetime.utcnow()

    def clock() -> datetime:
        return current

    session = ScoringSession(
        "simulation",
        settings=settings,
        clock=clock,
        baselines=demo_baselines(current),
        lifestyle=demo_lifestyle(),
    )
    sample = demo_sample(current)
    reports = [session.on_new_physio_sample(sample)]

    for _ in range(ticks):
        current += interval
        sample = random_walk_step(sample, rng, current)
        reports.append(session.on_new_physio_sample(sample))

    logger.info(
        "simulation.completed",
        ticks=ticks,
        seed=seed,
        final=round(reports[-1].score.final_score, 1),
        populated=session.baselines.populated_count,
    )
    return session, reports
