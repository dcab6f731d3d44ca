"""Score fusion engine — blends physiology, lifestyle and check-ins.

Pipeline
--------
1. **Alpha**: physiology weight, 0 while exercising or on poor signal,
   otherwise a fixed 0.5.
2. **State estimate**: ``S = alpha * APS + (1 - alpha) * LRS``.
3. **Check-in score**: the more recently updated of GAD-2 (0-6) and mood
   (0-4), rescaled to 0-100.
4. **Check-in weight**: ``exp(-elapsed_hours / 8)``, clamped to [0, 1].
5. **Final score**: ``w * CS + (1 - w) * S``.

:func:`recompute` is a pure function of a :class:`ScoringInputs` snapshot:
no I/O, no clock reads, no shared state.  Every component is already
bounded to [0, 100], so the final score needs no extra clamping.
"""

from __future__ import annotations

import math
from datetime import datetime

import structlog

from anxiety_engine.scoring.confidence import estimate_confidence
from anxiety_engine.scoring.contributors import rank_contributors
from anxiety_engine.scoring.lifestyle import compute_lrs, lifestyle_breakdown
from anxiety_engine.scoring.models import (
    AnxietyLevel,
    AnxietyScore,
    CheckinState,
    Contributor,
    LifestyleBreakdown,
    PhysiologyBreakdown,
    PhysioSample,
    ScoreReport,
    ScoringInputs,
    SignalQuality,
)
from anxiety_engine.scoring.physiology import (
    compute_aps,
    is_quality_gated,
    physiology_breakdown,
)

logger = structlog.get_logger(__name__)

PHYSIOLOGY_ALPHA = 0.5
DEFAULT_CHECKIN_DECAY_HOURS = 8.0

_LEVEL_THRESHOLDS = (
    (30.0, AnxietyLevel.LOW),
    (50.0, AnxietyLevel.MODERATE),
    (70.0, AnxietyLevel.HIGH),
)


# ── Fusion steps ─────────────────────────────────────────────


def compute_alpha(sample: PhysioSample) -> float:
    if sample.is_exercising or sample.signal_quality == SignalQuality.POOR:
        return 0.0
    return PHYSIOLOGY_ALPHA


def state_estimate(aps: float, lrs: float, alpha: float) -> float:
    return alpha * aps + (1 - alpha) * lrs


def checkin_score(checkin: CheckinState) -> float:
    """Rescale whichever self-report was updated last; GAD-2 wins ties."""
    if checkin.gad_updated is None and checkin.mood_updated is None:
        return 0.0
    gad_scaled = checkin.gad2_score / 6 * 100
    mood_scaled = checkin.mood / 4 * 100
    if checkin.mood_updated is not None and (
        checkin.gad_updated is None or checkin.mood_updated > checkin.gad_updated
    ):
        return mood_scaled
    return gad_scaled


def checkin_weight(
    checkin: CheckinState,
    as_of: datetime,
    decay_hours: float = DEFAULT_CHECKIN_DECAY_HOURS,
) -> float:
    """Decayed influence of the latest check-in: 1 when fresh, towards 0 as it ages."""
    last = checkin.last_updated
    if last is None:
        return 0.0
    elapsed_hours = (as_of - last).total_seconds() / 3600
    if elapsed_hours <= 0:
        return 1.0
    return max(0.0, min(1.0, math.exp(-elapsed_hours / decay_hours)))


def fuse(cs: float, state: float, weight: float) -> float:
    return weight * cs + (1 - weight) * state


def anxiety_level(score: float) -> AnxietyLevel:
    for upper, level in _LEVEL_THRESHOLDS:
        if score <= upper:
            return level
    return AnxietyLevel.VERY_HIGH


# ── Recompute ────────────────────────────────────────────────


def _evaluate(
    inputs: ScoringInputs,
    decay_hours: float,
) -> tuple[AnxietyScore, LifestyleBreakdown, PhysiologyBreakdown]:
    lifestyle = lifestyle_breakdown(inputs.lifestyle)
    physiology = physiology_breakdown(inputs.physio, inputs.baselines)

    lrs = compute_lrs(lifestyle)
    aps = compute_aps(physiology)
    alpha = compute_alpha(inputs.physio)
    state = state_estimate(aps, lrs, alpha)
    cs = checkin_score(inputs.checkin)
    weight = checkin_weight(inputs.checkin, inputs.as_of, decay_hours)
    final = fuse(cs, state, weight)

    score = AnxietyScore(
        aps=aps,
        lrs=lrs,
        cs=cs,
        state_estimate=state,
        final_score=final,
        confidence=estimate_confidence(
            inputs.physio.signal_quality, weight, inputs.physio.is_exercising
        ),
        alpha=alpha,
        checkin_weight=weight,
        level=anxiety_level(final),
    )
    return score, lifestyle, physiology


def recompute(
    inputs: ScoringInputs,
    *,
    checkin_decay_hours: float = DEFAULT_CHECKIN_DECAY_HOURS,
) -> AnxietyScore:
    """Compute the anxiety score for a complete input snapshot."""
    score, _, _ = _evaluate(inputs, checkin_decay_hours)
    return score


def score_inputs(
    inputs: ScoringInputs,
    previous: ScoreReport | None = None,
    *,
    checkin_decay_hours: float = DEFAULT_CHECKIN_DECAY_HOURS,
    calibration_min_baselines: int = 3,
) -> ScoreReport:
    """Run the full scoring pass and attach breakdowns, contributors and explanation.

    Parameters
    ----------
    inputs
        The immutable input snapshot.
    previous
        The prior report for the same subject, used to derive contributor
        trends.  ``None`` tags every contributor as stable.
    """
    score, lifestyle, physiology = _evaluate(inputs, checkin_decay_hours)
    contributors = rank_contributors(lifestyle, physiology, score, previous)

    report = ScoreReport(
        timestamp=inputs.as_of,
        score=score,
        contributors=contributors,
        lifestyle=lifestyle,
        physiology=physiology,
        explanation=_build_explanation(
            score, contributors, inputs, physiology, calibration_min_baselines
        ),
    )

    logger.info(
        "scoring.recomputed",
        final=round(score.final_score, 1),
        aps=round(score.aps, 1),
        lrs=round(score.lrs, 1),
        cs=round(score.cs, 1),
        alpha=score.alpha,
        checkin_weight=round(score.checkin_weight, 3),
        confidence=score.confidence.value,
    )
    return report


# ── Helpers ───────────────────────────────────────────────────


def _build_explanation(
    score: AnxietyScore,
    contributors: list[Contributor],
    inputs: ScoringInputs,
    physiology: PhysiologyBreakdown,
    calibration_min_baselines: int,
) -> str:
    """Generate a human-readable explanation of the score."""
    parts: list[str] = [
        f"Anxiety: {score.level.value} ({score.final_score:.1f}), "
        f"confidence {score.confidence.value}.",
        f"Physiology {score.aps:.1f} at weight {score.alpha:.2f}; "
        f"lifestyle {score.lrs:.1f}; check-in {score.cs:.1f} at weight "
        f"{score.checkin_weight:.2f}.",
    ]

    if inputs.physio.is_exercising:
        parts.append("⚠ Exercise detected, physiology excluded from the estimate.")
    elif inputs.physio.signal_quality == SignalQuality.POOR:
        parts.append("⚠ Poor signal quality, physiology excluded from the estimate.")
    elif is_quality_gated(physiology):
        parts.append("⚠ Too few physiological signals resolved; physiology down-weighted.")

    populated = inputs.baselines.populated_count
    if populated < calibration_min_baselines:
        parts.append(
            f"ℹ Personal baselines still calibrating ({populated} of 5 signals)."
        )

    if score.checkin_weight == 0:
        parts.append("ℹ No recent check-in.")

    drivers = [c for c in contributors if c.impact > 0]
    if drivers:
        listed = ", ".join(f"{c.name} ({c.impact:.0f}%)" for c in drivers)
        parts.append(f"Top contributors: {listed}.")

    return " ".join(parts)
