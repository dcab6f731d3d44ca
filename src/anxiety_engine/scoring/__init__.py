"""Anxiety scoring — rule-based fusion of physiology, lifestyle and self-report.

Architecture
------------
1. **Lifestyle risk** (`lifestyle.py`)
   - Eight day-scoped factors mapped to 0-100 through fixed band tables
   - Weighted into the Lifestyle Risk Score (LRS)

2. **Physiology risk** (`physiology.py`, `baseline.py`)
   - Personal baselines per signal via time-decayed EWMA, updated only in
     debounced rest windows
   - HR / HRV z-scores and RR / EDA / temperature deltas mapped to risk
   - Weighted into the Acute Physiology Score (APS), scaled down when
     fewer than two signals resolve

3. **Fusion** (`fusion.py`)
   - Physiology weight alpha: 0 when exercising or on poor signal, else 0.5
   - Check-in score from the latest GAD-2 or mood answer, decaying with an
     8 h time constant
   - Confidence tier, anxiety level and ranked contributors (`confidence.py`,
     `contributors.py`)

4. **Session** (`session.py`)
   - Per-user owner of the mutable inputs; recomputes on every change

5. **Interventions** (`interventions.py`)
   - Fixed catalogue of guided relief exercises, ordered for the current
     score with quick-relief breathing first at high levels

Limitations
-----------
Scores are heuristic estimates of anxiety risk from consumer-grade
signals.  They are never a diagnosis.
"""

from anxiety_engine.scoring.fusion import recompute, score_inputs
from anxiety_engine.scoring.models import (
    AnxietyLevel,
    AnxietyMoment,
    AnxietyScore,
    Baseline,
    BaselineProfile,
    CheckinState,
    ConfidenceLevel,
    Contributor,
    ContributorCategory,
    ContributorTrend,
    CyclePhase,
    LifestyleSnapshot,
    PhysioSample,
    PhysioSignal,
    ScoreReport,
    ScoringInputs,
    SignalQuality,
)
from anxiety_engine.scoring.session import ScoringSession, SessionRegistry

__all__ = [
    "AnxietyLevel",
    "AnxietyMoment",
    "AnxietyScore",
    "Baseline",
    "BaselineProfile",
    "CheckinState",
    "ConfidenceLevel",
    "Contributor",
    "ContributorCategory",
    "ContributorTrend",
    "CyclePhase",
    "LifestyleSnapshot",
    "PhysioSample",
    "PhysioSignal",
    "ScoreReport",
    "ScoringInputs",
    "ScoringSession",
    "SessionRegistry",
    "SignalQuality",
    "recompute",
    "score_inputs",
]
