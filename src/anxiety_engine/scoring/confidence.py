"""Confidence estimation — a presentation aid, never fed back into fusion."""

from __future__ import annotations

from anxiety_engine.scoring.models import ConfidenceLevel, SignalQuality

SENSOR_QUALITY: dict[SignalQuality, float] = {
    SignalQuality.GOOD: 0.9,
    SignalQuality.OK: 0.65,
    SignalQuality.POOR: 0.35,
}

# Check-in weight above which the self-report is considered fresh
_FRESH_CHECKIN_WEIGHT = 0.6

_CONFIDENCE_THRESHOLDS = (
    (0.75, ConfidenceLevel.HIGH),
    (0.45, ConfidenceLevel.MEDIUM),
)


def confidence_score(
    signal_quality: SignalQuality,
    checkin_weight: float,
    is_exercising: bool,
) -> float:
    """Blend sensor quality and input coverage into a 0-1 score."""
    coverage = 0.4 if checkin_weight > _FRESH_CHECKIN_WEIGHT else 0.25
    if is_exercising:
        coverage -= 0.1
    # Rounded so tier boundaries (e.g. exactly 0.75) compare exactly
    return round(max(0.0, min(1.0, 0.5 * SENSOR_QUALITY[signal_quality] + coverage)), 6)


def estimate_confidence(
    signal_quality: SignalQuality,
    checkin_weight: float,
    is_exercising: bool,
) -> ConfidenceLevel:
    score = confidence_score(signal_quality, checkin_weight, is_exercising)
    for threshold, level in _CONFIDENCE_THRESHOLDS:
        if score > threshold:
            return level
    return ConfidenceLevel.LOW
