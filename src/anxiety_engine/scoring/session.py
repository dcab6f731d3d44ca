"""Scoring session — per-user owner of the four scoring inputs.

The engine itself is pure (:func:`~anxiety_engine.scoring.fusion.recompute`);
this module is the single writer that holds the mutable state around it:

1. The latest physiology sample and the baseline tracker
2. The lifestyle snapshot and check-in state
3. The last :class:`ScoreReport` plus a bounded history of reports

Every mutating operation rebuilds an immutable :class:`ScoringInputs`
snapshot and recomputes the score in full.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable

import structlog

from anxiety_engine.config import Settings, get_settings
from anxiety_engine.scoring.baseline import BaselineTracker
from anxiety_engine.scoring.fusion import score_inputs
from anxiety_engine.scoring.models import (
    AnxietyMoment,
    BaselineProfile,
    CheckinState,
    LifestyleSnapshot,
    PhysioSample,
    ScoreReport,
    ScoringInputs,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]
LifestyleMutator = Callable[[LifestyleSnapshot], LifestyleSnapshot]


class ScoringSession:
    """Holds one user's inputs and recomputes the score on every change.

    Parameters
    ----------
    user_id : str
        Identifier used in log events and by :class:`SessionRegistry`.
    settings : Settings | None
        Tunables (defaults to :func:`get_settings`).
    clock : Callable[[], datetime] | None
        Source of "now" (naive UTC).  Injectable for deterministic tests.
    baselines : BaselineProfile | None
        Previously learned baselines to resume from.
    lifestyle : LifestyleSnapshot | None
        Initial lifestyle values.
    """

    def __init__(
        self,
        user_id: str = "default",
        *,
        settings: Settings | None = None,
        clock: Clock | None = None,
        baselines: BaselineProfile | None = None,
        lifestyle: LifestyleSnapshot | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or datetime.utcnow
        self.user_id = user_id

        self._tracker = BaselineTracker(
            baselines,
            half_life=timedelta(days=self._settings.baseline_half_life_days),
            rest_motion_threshold=self._settings.rest_motion_threshold,
            debounce=timedelta(seconds=self._settings.rest_debounce_seconds),
        )

        now = self._clock()
        self._calibration_started_at = now
        self._physio = PhysioSample.unavailable(now)
        self._lifestyle = lifestyle or LifestyleSnapshot()
        self._checkin = CheckinState()

        self._history: deque[ScoreReport] = deque(
            maxlen=self._settings.history_max_reports
        )
        self._report: ScoreReport = self._evaluate(previous=None)

    # ── Read-side ─────────────────────────────────────────────

    @property
    def report(self) -> ScoreReport:
        return self._report

    @property
    def baselines(self) -> BaselineProfile:
        return self._tracker.profile

    @property
    def physio(self) -> PhysioSample:
        return self._physio

    @property
    def lifestyle(self) -> LifestyleSnapshot:
        return self._lifestyle

    @property
    def checkin(self) -> CheckinState:
        return self._checkin

    @property
    def last_rest_at(self) -> datetime | None:
        return self._tracker.last_rest_at

    @property
    def history(self) -> list[ScoreReport]:
        """Recorded reports, oldest first."""
        return list(self._history)

    @property
    def inputs(self) -> ScoringInputs:
        """Immutable snapshot of the current inputs, evaluated at ``now``."""
        return ScoringInputs(
            baselines=self._tracker.profile,
            physio=self._physio,
            lifestyle=self._lifestyle,
            checkin=self._checkin,
            as_of=self._clock(),
        )

    def calibration_progress(self) -> dict[str, Any]:
        """How far the personal baselines are from being usable."""
        required = self._settings.calibration_min_baselines
        populated = self._tracker.profile.populated_count
        return {
            "populated": populated,
            "required": required,
            "complete": populated >= required,
            "progress": min(1.0, populated / required) if required > 0 else 1.0,
            "calibration_started_at": self._calibration_started_at,
            "calibration_ends_at": self._calibration_started_at
            + timedelta(days=self._settings.calibration_days),
        }

    # ── Mutations ─────────────────────────────────────────────

    def on_new_physio_sample(self, sample: PhysioSample) -> ScoreReport:
        """Replace the physiology sample, feed rest windows to the baselines, recompute."""
        self._physio = sample
        self._tracker.observe(sample, sample.timestamp)
        return self._recompute()

    def on_lifestyle_edit(self, mutator: LifestyleMutator) -> ScoreReport:
        self._lifestyle = mutator(self._lifestyle)
        return self._recompute()

    def on_checkin_submit(
        self,
        gad2: int | None = None,
        mood: int | None = None,
    ) -> ScoreReport:
        """Record a GAD-2 and/or mood answer, stamping each with ``now``.

        Out-of-range values raise :class:`pydantic.ValidationError` and
        leave the state unchanged.
        """
        now = self._clock()
        updates: dict[str, Any] = {}
        if gad2 is not None:
            updates["gad2_score"] = gad2
            updates["gad_updated"] = now
        if mood is not None:
            updates["mood"] = mood
            updates["mood_updated"] = now

        self._checkin = CheckinState(**{**dict(self._checkin), **updates})
        logger.info(
            "checkin.submitted",
            user_id=self.user_id,
            gad2=gad2,
            mood=mood,
        )
        return self._recompute()

    def add_anxiety_moment(self, note: str = "", intensity: float = 0.5) -> AnxietyMoment:
        """Log a felt-anxiety moment (most recent first).  Does not move the score."""
        moment = AnxietyMoment(note=note, intensity=intensity, timestamp=self._clock())
        self._checkin = CheckinState(
            **{
                **dict(self._checkin),
                "anxiety_moments": [moment, *self._checkin.anxiety_moments],
            }
        )
        self._recompute()
        return moment

    def refresh(self) -> ScoreReport:
        """Recompute at the current clock so check-in decay is reflected."""
        return self._recompute()

    # ── Internal ──────────────────────────────────────────────

    def _recompute(self) -> ScoreReport:
        self._report = self._evaluate(previous=self._report)
        return self._report

    def _evaluate(self, previous: ScoreReport | None) -> ScoreReport:
        report = score_inputs(
            self.inputs,
            previous=previous,
            checkin_decay_hours=self._settings.checkin_decay_hours,
            calibration_min_baselines=self._settings.calibration_min_baselines,
        )
        self._history.append(report)
        logger.debug(
            "session.recomputed",
            user_id=self.user_id,
            final=round(report.score.final_score, 1),
            level=report.score.level.value,
        )
        return report


class SessionRegistry:
    """In-memory map of user id → :class:`ScoringSession`."""

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._sessions: dict[str, ScoringSession] = {}

    def get(self, user_id: str) -> ScoringSession | None:
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: str) -> ScoringSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = ScoringSession(
                user_id, settings=self._settings, clock=self._clock
            )
            self._sessions[user_id] = session
            logger.info("session.created", user_id=user_id)
        return session

    def remove(self, user_id: str) -> bool:
        return self._sessions.pop(user_id, None) is not None

    @property
    def user_ids(self) -> list[str]:
        return sorted(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions
