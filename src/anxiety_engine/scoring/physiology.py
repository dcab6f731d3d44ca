"""Physiology risk mapping — six sub-scores and the quality-gated APS.

Evidence mapping
----------------
=========  ====================================  ============================
Signal     Comparison against baseline           Direction
=========  ====================================  ============================
HR         z-score                               higher HR → higher risk
HRV        z-score                               lower HRV → higher risk
RR         absolute delta from baseline mean     faster breathing → higher
EDA        absolute delta (peaks / min)          more peaks → higher
Temp       absolute delta (°C)                   cooling → higher
Motion     raw motion score                      fidgeting → 60–80 band
=========  ====================================  ============================

Exercise invalidates autonomic interpretation, so every sub-score is 0
while ``is_exercising`` is set.  An uncalibrated baseline contributes no
adjustment (z-score and delta both 0).
"""

from __future__ import annotations

from anxiety_engine.scoring.models import (
    Baseline,
    BaselineProfile,
    PhysiologyBreakdown,
    PhysiologyFactor,
    PhysioSample,
    PhysioSignal,
)

PHYSIOLOGY_WEIGHTS: dict[PhysiologyFactor, float] = {
    PhysiologyFactor.HR: 0.20,
    PhysiologyFactor.HRV: 0.20,
    PhysiologyFactor.RR: 0.15,
    PhysiologyFactor.EDA: 0.20,
    PhysiologyFactor.TEMP: 0.10,
    PhysiologyFactor.MOTION: 0.15,
}

# APS is scaled down when fewer than this many sub-scores resolve non-zero
QUALITY_GATE_MIN_SIGNALS = 2
QUALITY_GATE_SCALE = 0.3

# (inclusive lower bound, risk), checked top-down
_HR_Z_BANDS = ((3.0, 95.0), (2.0, 85.0), (1.5, 70.0), (1.0, 50.0))
_RR_DELTA_BANDS = ((8.0, 100.0), (6.0, 90.0), (4.0, 80.0), (2.0, 65.0))
_EDA_DELTA_BANDS = ((4.0, 95.0), (2.0, 80.0), (1.0, 65.0))
# (inclusive upper bound, risk), checked top-down
_HRV_Z_BANDS = ((-3.0, 95.0), (-2.0, 85.0), (-1.0, 70.0))
_TEMP_DELTA_BANDS = ((-3.0, 95.0), (-2.0, 80.0), (-1.0, 65.0))


def z_score(value: float, baseline: Baseline | None) -> float:
    """Deviation from baseline in standard deviations; 0 when uncalibrated."""
    if baseline is None or baseline.sd <= 0:
        return 0.0
    return (value - baseline.mean) / baseline.sd


def baseline_delta(value: float, baseline: Baseline | None) -> float:
    """Absolute-unit deviation from the baseline mean; 0 when uncalibrated."""
    if baseline is None:
        return 0.0
    return value - baseline.mean


def _at_least(value: float, bands: tuple[tuple[float, float], ...], fallback: float) -> float:
    for lower, risk in bands:
        if value >= lower:
            return risk
    return fallback


def _at_most(value: float, bands: tuple[tuple[float, float], ...], fallback: float) -> float:
    for upper, risk in bands:
        if value <= upper:
            return risk
    return fallback


# ── Sub-scores ───────────────────────────────────────────────


def heart_rate_risk(z: float) -> float:
    return _at_least(z, _HR_Z_BANDS, 40.0)


def hrv_risk(z: float) -> float:
    """Inverted: suppressed HRV is the high-risk direction."""
    if z > 0.5:
        return 40.0
    return _at_most(z, _HRV_Z_BANDS, 50.0)


def respiratory_rate_risk(delta: float) -> float:
    return _at_least(delta, _RR_DELTA_BANDS, 50.0)


def eda_risk(delta: float) -> float:
    return _at_least(delta, _EDA_DELTA_BANDS, 50.0)


def skin_temp_risk(delta: float) -> float:
    """Peripheral cooling (vasoconstriction) is the high-risk direction."""
    if delta > 0.2:
        return 40.0
    return _at_most(delta, _TEMP_DELTA_BANDS, 50.0)


def motion_risk(motion_score: float) -> float:
    """Fidgeting maps into a 60–80 band; any detectable motion signals some arousal."""
    return 60.0 + 20.0 * max(0.0, min(1.0, motion_score))


# ── Aggregation ──────────────────────────────────────────────


def physiology_breakdown(sample: PhysioSample, baselines: BaselineProfile) -> PhysiologyBreakdown:
    """Map a physiology sample against the current baselines."""
    if sample.is_exercising:
        return PhysiologyBreakdown(hr=0.0, hrv=0.0, rr=0.0, eda=0.0, temp=0.0, motion=0.0)

    return PhysiologyBreakdown(
        hr=heart_rate_risk(z_score(sample.hr, baselines.get(PhysioSignal.HR))),
        hrv=hrv_risk(z_score(sample.hrv, baselines.get(PhysioSignal.HRV))),
        rr=respiratory_rate_risk(baseline_delta(sample.rr, baselines.get(PhysioSignal.RR))),
        eda=eda_risk(baseline_delta(sample.eda_peaks_per_min, baselines.get(PhysioSignal.EDA))),
        temp=skin_temp_risk(baseline_delta(sample.skin_temp_delta, baselines.get(PhysioSignal.TEMP))),
        motion=motion_risk(sample.motion_score),
    )


def weighted_physiology(breakdown: PhysiologyBreakdown) -> dict[PhysiologyFactor, float]:
    """Return ``weight * risk`` per factor (before the quality gate)."""
    return {f: w * breakdown.risk(f) for f, w in PHYSIOLOGY_WEIGHTS.items()}


def compute_raw_aps(breakdown: PhysiologyBreakdown) -> float:
    return sum(weighted_physiology(breakdown).values())


def is_quality_gated(breakdown: PhysiologyBreakdown) -> bool:
    return breakdown.non_zero_count < QUALITY_GATE_MIN_SIGNALS


def compute_aps(breakdown: PhysiologyBreakdown) -> float:
    """Acute Physiology Score with the sparse-signal quality gate applied."""
    aps = compute_raw_aps(breakdown)
    if is_quality_gated(breakdown):
        return aps * QUALITY_GATE_SCALE
    return aps
