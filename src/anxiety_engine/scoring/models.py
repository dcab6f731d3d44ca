"""Pydantic models for the anxiety scoring subsystem.

These models represent:
- Adaptive physiological baselines (one per tracked signal)
- The four input families: physiology sample, lifestyle snapshot,
  check-in state and baseline profile, bundled as an immutable snapshot
- Per-factor risk breakdowns used for explainability
- The fused anxiety score, ranked contributors and the full report
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Engine timestamps are naive UTC; convert aware inputs."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ── Enums ─────────────────────────────────────────────────────


class PhysioSignal(str, Enum):
    """Physiological signals that carry an adaptive baseline."""

    HR = "hr"
    HRV = "hrv"
    RR = "rr"
    EDA = "eda"
    TEMP = "temp"


class SignalQuality(str, Enum):
    """Sensor signal quality reported by the acquisition layer."""

    GOOD = "good"
    OK = "ok"
    POOR = "poor"


class CyclePhase(str, Enum):
    """Menstrual-cycle phase as logged by the user."""

    NONE = "none"
    FOLLICULAR = "follicular"
    OVULATORY = "ovulatory"
    LUTEAL = "luteal"
    PMS = "pms"
    MENSTRUAL = "menstrual"


class ConfidenceLevel(str, Enum):
    """Confidence tier attached to an anxiety score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnxietyLevel(str, Enum):
    """Discretised anxiety level for display."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class ContributorCategory(str, Enum):
    PHYSIOLOGY = "physiology"
    LIFESTYLE = "lifestyle"
    CHECKIN = "checkin"


class ContributorTrend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class LifestyleFactor(str, Enum):
    """Lifestyle risk factors.  Values match :class:`LifestyleBreakdown` fields."""

    SLEEP = "sleep"
    STIMULANTS = "stimulants"
    ACTIVITY = "activity"
    CONTEXT = "context"
    SELF_CARE = "self_care"
    CYCLE = "cycle"
    SCREEN = "screen"
    DIET = "diet"


class PhysiologyFactor(str, Enum):
    """Physiology risk factors.  Values match :class:`PhysiologyBreakdown` fields."""

    HR = "hr"
    HRV = "hrv"
    RR = "rr"
    EDA = "eda"
    TEMP = "temp"
    MOTION = "motion"


# ── Baselines ────────────────────────────────────────────────


class Baseline(BaseModel):
    """Exponentially-weighted mean / deviation of one physiological signal.

    ``sd`` is floored at 0.1 so z-scores never divide by (near) zero.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    sd: float = Field(ge=0.1)
    last_updated: datetime
    observation_count: int = 0

    @field_validator("last_updated")
    @classmethod
    def _normalise_last_updated(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class BaselineProfile(BaseModel):
    """The five per-signal baselines.  ``None`` means not yet calibrated."""

    model_config = ConfigDict(frozen=True)

    hr: Baseline | None = None
    hrv: Baseline | None = None
    rr: Baseline | None = None
    eda: Baseline | None = None
    temp: Baseline | None = None

    def get(self, signal: PhysioSignal) -> Baseline | None:
        return getattr(self, signal.value)

    def with_baseline(self, signal: PhysioSignal, baseline: Baseline) -> BaselineProfile:
        """Return a copy with one signal's baseline replaced."""
        return self.model_copy(update={signal.value: baseline})

    @property
    def populated_count(self) -> int:
        return sum(1 for s in PhysioSignal if self.get(s) is not None)

    def is_calibrated(self, required: int = 3) -> bool:
        return self.populated_count >= required


# ── Inputs ───────────────────────────────────────────────────


class PhysioSample(BaseModel):
    """Instantaneous physiological reading from the wearable.

    Replaced wholesale on each acquisition.  Values are not range-checked:
    out-of-range inputs are the acquisition layer's responsibility.
    """

    model_config = ConfigDict(frozen=True)

    hr: float  # bpm
    hrv: float  # ms
    rr: float  # breaths / min
    eda_peaks_per_min: float
    skin_temp_delta: float  # °C relative
    motion_score: float = 0.0  # normalised 0-1
    is_exercising: bool = False
    signal_quality: SignalQuality = SignalQuality.GOOD
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("timestamp")
    @classmethod
    def _normalise_timestamp(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)

    @classmethod
    def unavailable(cls, timestamp: datetime | None = None) -> PhysioSample:
        """Placeholder used before the first acquisition.

        Poor quality forces the physiology weight to zero, so the score
        falls back to lifestyle and check-in inputs.
        """
        return cls(
            hr=0.0,
            hrv=0.0,
            rr=0.0,
            eda_peaks_per_min=0.0,
            skin_temp_delta=0.0,
            signal_quality=SignalQuality.POOR,
            timestamp=timestamp or datetime.utcnow(),
        )


class LifestyleSnapshot(BaseModel):
    """Day-scoped self-reported or synced lifestyle values."""

    model_config = ConfigDict(frozen=True)

    # ── Sleep
    sleep_debt_hours: float = 0.0
    sleep_efficiency: float = 85.0  # %
    bedtime_shift_minutes: float = 0.0

    # ── Stimulants
    caffeine_mg_after_2pm: float = 0.0
    nicotine: bool = False
    alcohol_units_after_8pm: int = 0

    # ── Activity & context
    activity_minutes: float = 0.0
    vigorous_minutes: float = 0.0
    workload_hours: float = 0.0
    is_exam_day: bool = False  # exam or deadline

    # ── Self-care & cycle
    self_care_minutes: float = 0.0
    has_cycle_data: bool = False
    cycle_phase: CyclePhase = CyclePhase.NONE

    # ── Screen
    post_11pm_screen_minutes: float = 0.0
    daytime_screen_hours: float = 0.0

    # ── Diet
    skipped_meals: int = 0
    sugary_items: int = 0
    water_glasses: int = 6


class AnxietyMoment(BaseModel):
    """A tagged moment of felt anxiety.  Informational only."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    note: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    intensity: float = Field(ge=0.0, le=1.0)

    @field_validator("timestamp")
    @classmethod
    def _normalise_timestamp(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class CheckinState(BaseModel):
    """Latest GAD-2 / mood self-report plus logged anxiety moments.

    ``anxiety_moments`` is ordered most recent first.
    """

    model_config = ConfigDict(frozen=True)

    gad2_score: int = Field(0, ge=0, le=6)
    gad_updated: datetime | None = None
    mood: int = Field(0, ge=0, le=4)
    mood_updated: datetime | None = None
    anxiety_moments: list[AnxietyMoment] = Field(default_factory=list)

    @field_validator("gad_updated", "mood_updated")
    @classmethod
    def _normalise_stamps(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)

    @property
    def last_updated(self) -> datetime | None:
        stamps = [t for t in (self.gad_updated, self.mood_updated) if t is not None]
        return max(stamps) if stamps else None


class ScoringInputs(BaseModel):
    """Complete immutable snapshot consumed by :func:`recompute`.

    ``as_of`` is the evaluation clock; it makes check-in decay
    reproducible for a given snapshot.
    """

    model_config = ConfigDict(frozen=True)

    baselines: BaselineProfile = Field(default_factory=BaselineProfile)
    physio: PhysioSample
    lifestyle: LifestyleSnapshot = Field(default_factory=LifestyleSnapshot)
    checkin: CheckinState = Field(default_factory=CheckinState)
    as_of: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("as_of")
    @classmethod
    def _normalise_as_of(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


# ── Breakdowns ───────────────────────────────────────────────


class LifestyleBreakdown(BaseModel):
    """Per-factor lifestyle risk, each in [0, 100]."""

    sleep: float
    stimulants: float
    activity: float
    context: float
    self_care: float
    cycle: float
    screen: float
    diet: float

    def risk(self, factor: LifestyleFactor) -> float:
        return getattr(self, factor.value)


class PhysiologyBreakdown(BaseModel):
    """Per-signal physiology risk, each in [0, 100]; all zero while exercising."""

    hr: float
    hrv: float
    rr: float
    eda: float
    temp: float
    motion: float

    def risk(self, factor: PhysiologyFactor) -> float:
        return getattr(self, factor.value)

    @property
    def non_zero_count(self) -> int:
        return sum(1 for f in PhysiologyFactor if self.risk(f) > 0)


# ── Outputs ──────────────────────────────────────────────────


class AnxietyScore(BaseModel):
    """Fused anxiety estimate.  Rebuilt in full on every recompute."""

    aps: float = Field(description="Acute Physiology Score [0, 100].")
    lrs: float = Field(description="Lifestyle Risk Score [0, 100].")
    cs: float = Field(description="Check-in Score [0, 100].")
    state_estimate: float = Field(description="alpha * APS + (1 - alpha) * LRS.")
    final_score: float = Field(description="Final anxiety score [0, 100].")
    confidence: ConfidenceLevel
    alpha: float = Field(description="Physiology weight in the state estimate [0, 1].")
    checkin_weight: float = Field(description="Decayed check-in weight [0, 1].")
    level: AnxietyLevel = AnxietyLevel.LOW


class Contributor(BaseModel):
    """A ranked driver of the current score."""

    name: str
    category: ContributorCategory
    impact: float = Field(description="Percentage contribution within its category.")
    trend: ContributorTrend = ContributorTrend.STABLE


class ScoreReport(BaseModel):
    """Everything a UI or sync collaborator reads after one recompute."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime
    score: AnxietyScore
    contributors: list[Contributor] = Field(default_factory=list)
    lifestyle: LifestyleBreakdown
    physiology: PhysiologyBreakdown
    explanation: str = ""
    model_version: str = "rule_v1"
