"""Adaptive physiological baselines — time-decayed EWMA per signal.

The tracker keeps an exponentially weighted mean and mean-absolute
deviation for each of the five tracked signals.  Unlike a fixed-alpha
EWMA, the smoothing weight is derived from the wall-clock gap since the
previous update, with an explicit half-life::

    lambda = ln(2) / half_life
    decay  = exp(-lambda * elapsed)
    mean'  = mean * decay + value * (1 - decay)
    sd'    = max(0.1, sd * decay + |value - mean| * (1 - decay))

Baselines only move during confirmed rest windows (motion below the rest
threshold) and at most once per debounce interval, so bursts of
low-motion readings cannot drag the baseline around.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Callable

import structlog

from anxiety_engine.scoring.models import (
    Baseline,
    BaselineProfile,
    PhysioSample,
    PhysioSignal,
)

logger = structlog.get_logger(__name__)

# ── Constants ─────────────────────────────────────────────────

SD_FLOOR = 0.1
DEFAULT_HALF_LIFE = timedelta(days=14)
DEFAULT_REST_MOTION_THRESHOLD = 0.2
DEFAULT_REST_DEBOUNCE = timedelta(seconds=120)

# Deviation used to seed a signal's first baseline (population-typical spread)
PRIOR_SD: dict[PhysioSignal, float] = {
    PhysioSignal.HR: 6.0,
    PhysioSignal.HRV: 12.0,
    PhysioSignal.RR: 2.0,
    PhysioSignal.EDA: 0.6,
    PhysioSignal.TEMP: 0.6,
}

SIGNAL_ACCESSORS: dict[PhysioSignal, Callable[[PhysioSample], float]] = {
    PhysioSignal.HR: lambda s: s.hr,
    PhysioSignal.HRV: lambda s: s.hrv,
    PhysioSignal.RR: lambda s: s.rr,
    PhysioSignal.EDA: lambda s: s.eda_peaks_per_min,
    PhysioSignal.TEMP: lambda s: s.skin_temp_delta,
}


# ── Pure update ──────────────────────────────────────────────


def decay_factor(elapsed: timedelta, half_life: timedelta = DEFAULT_HALF_LIFE) -> float:
    """Weight retained by the old baseline after ``elapsed``."""
    lam = math.log(2) / half_life.total_seconds()
    return math.exp(-lam * max(0.0, elapsed.total_seconds()))


def seed_baseline(signal: PhysioSignal, value: float, now: datetime) -> Baseline:
    """First baseline for a signal: observed value, prior spread."""
    return Baseline(
        mean=value,
        sd=max(SD_FLOOR, PRIOR_SD[signal]),
        last_updated=now,
        observation_count=1,
    )


def ewma_update(
    baseline: Baseline,
    value: float,
    now: datetime,
    half_life: timedelta = DEFAULT_HALF_LIFE,
) -> Baseline:
    """Fold one rest-window value into ``baseline`` and return the new baseline."""
    decay = decay_factor(now - baseline.last_updated, half_life)
    new_mean = baseline.mean * decay + value * (1 - decay)
    new_sd = baseline.sd * decay + abs(value - baseline.mean) * (1 - decay)
    return Baseline(
        mean=new_mean,
        sd=max(SD_FLOOR, new_sd),
        last_updated=now,
        observation_count=baseline.observation_count + 1,
    )


# ── Tracker ──────────────────────────────────────────────────


class BaselineTracker:
    """Owns the :class:`BaselineProfile` and decides when it may move.

    Parameters
    ----------
    profile : BaselineProfile | None
        Starting baselines (empty profile when ``None``).
    half_life : timedelta
        EWMA half-life (default 14 days).
    rest_motion_threshold : float
        Motion score strictly below this counts as rest.
    debounce : timedelta
        Minimum interval between two recorded rest windows.
    last_rest_at : datetime | None
        Timestamp of the previous recorded rest window, if any.
    """

    def __init__(
        self,
        profile: BaselineProfile | None = None,
        *,
        half_life: timedelta = DEFAULT_HALF_LIFE,
        rest_motion_threshold: float = DEFAULT_REST_MOTION_THRESHOLD,
        debounce: timedelta = DEFAULT_REST_DEBOUNCE,
        last_rest_at: datetime | None = None,
    ) -> None:
        self._profile = profile or BaselineProfile()
        self._half_life = half_life
        self._rest_motion_threshold = rest_motion_threshold
        self._debounce = debounce
        self._last_rest_at = last_rest_at

    @property
    def profile(self) -> BaselineProfile:
        return self._profile

    @property
    def last_rest_at(self) -> datetime | None:
        return self._last_rest_at

    # ── Single-signal update ─────────────────────────────────

    def record_rest_sample(self, signal: PhysioSignal, value: float, now: datetime) -> Baseline:
        """Update one signal's baseline from a rest-window value.

        Samples older than the baseline's ``last_updated`` are ignored:
        each update depends on the previous timestamp, so updates must be
        applied in time order.
        """
        current = self._profile.get(signal)
        if current is None:
            updated = seed_baseline(signal, value, now)
        elif now < current.last_updated:
            logger.warning(
                "baseline.out_of_order_sample",
                signal=signal.value,
                sample_time=now.isoformat(),
                last_updated=current.last_updated.isoformat(),
            )
            return current
        else:
            updated = ewma_update(current, value, now, self._half_life)

        self._profile = self._profile.with_baseline(signal, updated)
        logger.debug(
            "baseline.updated",
            signal=signal.value,
            mean=round(updated.mean, 3),
            sd=round(updated.sd, 3),
            n=updated.observation_count,
        )
        return updated

    # ── Rest-window detection ────────────────────────────────

    def is_rest(self, sample: PhysioSample) -> bool:
        return sample.motion_score < self._rest_motion_threshold

    def should_record(self, sample: PhysioSample, now: datetime) -> bool:
        """True when ``sample`` is at rest and the debounce window has elapsed."""
        if not self.is_rest(sample):
            return False
        if self._last_rest_at is None:
            return True
        return now - self._last_rest_at >= self._debounce

    def observe(self, sample: PhysioSample, now: datetime | None = None) -> bool:
        """Record a rest window for all five signals if ``sample`` qualifies.

        Returns ``True`` when the baselines were updated.
        """
        now = now or sample.timestamp
        if not self.should_record(sample, now):
            return False

        for signal, accessor in SIGNAL_ACCESSORS.items():
            self.record_rest_sample(signal, accessor(sample), now)
        self._last_rest_at = now

        logger.info(
            "baseline.rest_window_recorded",
            at=now.isoformat(),
            populated=self._profile.populated_count,
        )
        return True
