"""Request / response models shared across API route modules."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from anxiety_engine.scoring.models import (
    CyclePhase,
    PhysioSample,
    SignalQuality,
    to_naive_utc,
)


class PhysioRequest(BaseModel):
    """One physiology sample pushed by the acquisition layer."""

    hr: float
    hrv: float
    rr: float
    eda_peaks_per_min: float
    skin_temp_delta: float
    motion_score: float = Field(0.0, ge=0.0, le=1.0)
    is_exercising: bool = False
    signal_quality: SignalQuality = SignalQuality.GOOD
    timestamp: datetime | None = None

    @field_validator("timestamp")
    @classmethod
    def _normalise_timestamp(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)

    def to_sample(self, default_time: datetime) -> PhysioSample:
        return PhysioSample(
            **self.model_dump(exclude={"timestamp"}),
            timestamp=self.timestamp or default_time,
        )


class LifestylePatch(BaseModel):
    """Partial lifestyle update; only the fields sent are changed."""

    sleep_debt_hours: float | None = Field(None, ge=0)
    sleep_efficiency: float | None = Field(None, ge=0, le=100)
    bedtime_shift_minutes: float | None = Field(None, ge=0)
    caffeine_mg_after_2pm: float | None = Field(None, ge=0)
    nicotine: bool | None = None
    alcohol_units_after_8pm: int | None = Field(None, ge=0)
    activity_minutes: float | None = Field(None, ge=0)
    vigorous_minutes: float | None = Field(None, ge=0)
    workload_hours: float | None = Field(None, ge=0)
    is_exam_day: bool | None = None
    self_care_minutes: float | None = Field(None, ge=0)
    has_cycle_data: bool | None = None
    cycle_phase: CyclePhase | None = None
    post_11pm_screen_minutes: float | None = Field(None, ge=0)
    daytime_screen_hours: float | None = Field(None, ge=0)
    skipped_meals: int | None = Field(None, ge=0)
    sugary_items: int | None = Field(None, ge=0)
    water_glasses: int | None = Field(None, ge=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class CheckinRequest(BaseModel):
    """GAD-2 (0-6) and/or mood (0-4) self-report."""

    gad2: int | None = Field(None, ge=0, le=6)
    mood: int | None = Field(None, ge=0, le=4)

    @model_validator(mode="after")
    def _at_least_one(self) -> CheckinRequest:
        if self.gad2 is None and self.mood is None:
            raise ValueError("Provide gad2, mood or both.")
        return self


class MomentRequest(BaseModel):
    """Tag a moment of felt anxiety."""

    note: str = ""
    intensity: float = Field(0.5, ge=0.0, le=1.0)
