"""Lifestyle risk mapping — eight fixed-threshold sub-scores and the LRS.

Lifestyle inputs are self-reported ordinal values, so they are mapped
through fixed piecewise thresholds rather than adaptive baselines.  Every
breakpoint is an inclusive upper bound: ``debt <= 1`` maps to 40, a debt of
1.01 already maps to 60.
"""

from __future__ import annotations

from anxiety_engine.scoring.models import (
    CyclePhase,
    LifestyleBreakdown,
    LifestyleFactor,
    LifestyleSnapshot,
)

LIFESTYLE_WEIGHTS: dict[LifestyleFactor, float] = {
    LifestyleFactor.SLEEP: 0.30,
    LifestyleFactor.STIMULANTS: 0.20,
    LifestyleFactor.ACTIVITY: 0.10,
    LifestyleFactor.CONTEXT: 0.15,
    LifestyleFactor.SELF_CARE: 0.05,
    LifestyleFactor.CYCLE: 0.05,
    LifestyleFactor.SCREEN: 0.10,
    LifestyleFactor.DIET: 0.05,
}

# (inclusive upper bound, risk); first matching row wins, else the fallback
_SLEEP_DEBT_BANDS = ((0.0, 20.0), (1.0, 40.0), (2.0, 60.0), (3.0, 80.0))
_CAFFEINE_BANDS = ((0.0, 20.0), (100.0, 40.0), (200.0, 65.0))
_LATE_SCREEN_BANDS = ((0.0, 20.0), (30.0, 50.0), (60.0, 70.0))
_ACTIVITY_ADJUSTMENTS = ((10.0, 10.0), (20.0, 0.0), (30.0, -5.0), (60.0, -15.0))

_CYCLE_RISK = {
    CyclePhase.NONE: 50.0,
    CyclePhase.FOLLICULAR: 45.0,
    CyclePhase.OVULATORY: 45.0,
    CyclePhase.LUTEAL: 65.0,
    CyclePhase.PMS: 65.0,
    CyclePhase.MENSTRUAL: 55.0,
}


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _band(value: float, bands: tuple[tuple[float, float], ...], fallback: float) -> float:
    """Look up ``value`` in inclusive-upper-bound bands."""
    for upper, risk in bands:
        if value <= upper:
            return risk
    return fallback


# ── Sub-scores ───────────────────────────────────────────────


def sleep_risk(ls: LifestyleSnapshot) -> float:
    risk = _band(ls.sleep_debt_hours, _SLEEP_DEBT_BANDS, 95.0)
    if ls.sleep_efficiency < 80:
        risk += 10
    if ls.bedtime_shift_minutes > 90:
        risk += 5
    return min(100.0, risk)


def stimulant_risk(ls: LifestyleSnapshot) -> float:
    risk = _band(ls.caffeine_mg_after_2pm, _CAFFEINE_BANDS, 85.0)
    if ls.nicotine:
        risk = max(risk, 80.0)
    if ls.alcohol_units_after_8pm > 0:
        risk = min(95.0, risk + ls.alcohol_units_after_8pm * 10)
    return min(100.0, risk)


def activity_risk(ls: LifestyleSnapshot) -> float:
    """Baseline 50, lowered by moderate activity; beyond 60 minutes no adjustment."""
    risk = 50.0 + _band(ls.activity_minutes, _ACTIVITY_ADJUSTMENTS, 0.0)
    if ls.vigorous_minutes > 120:
        risk += 5
    return _clamp(risk)


def context_risk(ls: LifestyleSnapshot) -> float:
    risk = 85.0 if ls.is_exam_day else 45.0
    if ls.workload_hours > 8:
        risk += 10
    return min(100.0, risk)


def self_care_risk(ls: LifestyleSnapshot) -> float:
    """Baseline 50, lowered as logged minutes grow.

    Unlike the other bands the 20-30 bucket is closed on both ends, so
    exactly 20 minutes already maps to 40.
    """
    minutes = ls.self_care_minutes
    if minutes < 1:
        return 55.0
    if minutes <= 10:
        return 50.0
    if minutes < 20:
        return 45.0
    if minutes <= 30:
        return 40.0
    return 35.0


def cycle_risk(ls: LifestyleSnapshot) -> float:
    if not ls.has_cycle_data:
        return 50.0
    return _CYCLE_RISK[ls.cycle_phase]


def screen_risk(ls: LifestyleSnapshot) -> float:
    risk = _band(ls.post_11pm_screen_minutes, _LATE_SCREEN_BANDS, 85.0)
    risk += max(0.0, (ls.daytime_screen_hours - 6) * 5)
    return min(100.0, risk)


def diet_risk(ls: LifestyleSnapshot) -> float:
    risk = 30.0 + ls.skipped_meals * 15 + ls.sugary_items * 10
    if ls.water_glasses < 5:
        risk += 15
    elif ls.water_glasses >= 8:
        risk -= 5
    return _clamp(risk)


# ── Aggregation ──────────────────────────────────────────────


def lifestyle_breakdown(ls: LifestyleSnapshot) -> LifestyleBreakdown:
    """Map a lifestyle snapshot to its eight sub-scores."""
    return LifestyleBreakdown(
        sleep=sleep_risk(ls),
        stimulants=stimulant_risk(ls),
        activity=activity_risk(ls),
        context=context_risk(ls),
        self_care=self_care_risk(ls),
        cycle=cycle_risk(ls),
        screen=screen_risk(ls),
        diet=diet_risk(ls),
    )


def weighted_lifestyle(breakdown: LifestyleBreakdown) -> dict[LifestyleFactor, float]:
    """Return ``weight * risk`` per factor."""
    return {f: w * breakdown.risk(f) for f, w in LIFESTYLE_WEIGHTS.items()}


def compute_lrs(breakdown: LifestyleBreakdown) -> float:
    """Lifestyle Risk Score: weighted sum of the sub-scores."""
    return sum(weighted_lifestyle(breakdown).values())
