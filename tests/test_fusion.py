"""Tests for score fusion, check-in decay and confidence."""

from __future__ import annotations

import json
import math
from datetime import timedelta, timezone

import pytest

from anxiety_engine.scoring.confidence import confidence_score, estimate_confidence
from anxiety_engine.scoring.fusion import (
    anxiety_level,
    checkin_score,
    checkin_weight,
    compute_alpha,
    recompute,
    score_inputs,
)
from anxiety_engine.scoring.models import (
    AnxietyLevel,
    AnxietyMoment,
    Baseline,
    CheckinState,
    ConfidenceLevel,
    ContributorCategory,
    LifestyleSnapshot,
    PhysioSample,
    ScoringInputs,
    SignalQuality,
)


def _inputs(physio, baselines, now, **kwargs) -> ScoringInputs:
    return ScoringInputs(baselines=baselines, physio=physio, as_of=now, **kwargs)


# ── Alpha ─────────────────────────────────────────────────────


class TestAlpha:
    def test_good_signal_at_rest(self, resting_sample):
        assert compute_alpha(resting_sample) == 0.5

    def test_ok_signal(self, resting_sample):
        sample = resting_sample.model_copy(update={"signal_quality": SignalQuality.OK})
        assert compute_alpha(sample) == 0.5

    def test_poor_signal(self, resting_sample):
        sample = resting_sample.model_copy(update={"signal_quality": SignalQuality.POOR})
        assert compute_alpha(sample) == 0.0

    def test_exercising(self, resting_sample):
        sample = resting_sample.model_copy(update={"is_exercising": True})
        assert compute_alpha(sample) == 0.0


# ── Check-in ──────────────────────────────────────────────────


class TestCheckinScore:
    def test_no_checkin(self, now):
        state = CheckinState()
        assert checkin_score(state) == 0.0
        assert checkin_weight(state, now) == 0.0

    def test_gad_newer_than_mood(self, now):
        state = CheckinState(
            gad2_score=6,
            gad_updated=now - timedelta(hours=1),
            mood=1,
            mood_updated=now - timedelta(hours=3),
        )
        assert checkin_score(state) == pytest.approx(100.0)

    def test_mood_newer_than_gad(self, now):
        state = CheckinState(
            gad2_score=6,
            gad_updated=now - timedelta(hours=3),
            mood=1,
            mood_updated=now - timedelta(hours=1),
        )
        assert checkin_score(state) == pytest.approx(25.0)

    def test_tie_goes_to_gad(self, now):
        state = CheckinState(gad2_score=3, gad_updated=now, mood=4, mood_updated=now)
        assert checkin_score(state) == pytest.approx(50.0)

    def test_mood_only(self, now):
        state = CheckinState(mood=2, mood_updated=now)
        assert checkin_score(state) == pytest.approx(50.0)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            CheckinState(gad2_score=7)
        with pytest.raises(ValueError):
            CheckinState(mood=5)


class TestCheckinDecay:
    def test_fresh_is_full_weight(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now)
        assert checkin_weight(state, now) == 1.0

    def test_eight_hours_is_one_over_e(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now - timedelta(hours=8))
        assert checkin_weight(state, now) == pytest.approx(math.exp(-1))
        assert checkin_weight(state, now) == pytest.approx(0.3679, abs=1e-4)

    def test_strictly_decreasing(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now)
        weights = [checkin_weight(state, now + timedelta(hours=h)) for h in (0, 1, 2, 4, 8, 16, 48)]
        assert all(a > b for a, b in zip(weights, weights[1:]))

    def test_tends_to_zero(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now)
        assert checkin_weight(state, now + timedelta(days=30)) == pytest.approx(0.0, abs=1e-12)

    def test_future_timestamp_clamps_to_one(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now + timedelta(days=400))
        assert checkin_weight(state, now) == 1.0

    def test_custom_time_constant(self, now):
        state = CheckinState(gad2_score=2, gad_updated=now - timedelta(hours=4))
        assert checkin_weight(state, now, decay_hours=4) == pytest.approx(math.exp(-1))


# ── Recompute ─────────────────────────────────────────────────


class TestRecompute:
    def test_state_estimate_blend(self, resting_sample, calibrated_profile, now):
        score = recompute(_inputs(resting_sample, calibrated_profile, now))
        assert score.aps == pytest.approx(49.5)
        assert score.lrs == pytest.approx(31.5)
        assert score.alpha == 0.5
        assert score.state_estimate == pytest.approx(40.5)
        assert score.checkin_weight == 0.0
        assert score.final_score == pytest.approx(40.5)
        assert score.level == AnxietyLevel.MODERATE

    def test_exercise_falls_back_to_lifestyle(self, stressed_sample, calibrated_profile, now):
        sample = stressed_sample.model_copy(update={"is_exercising": True})
        score = recompute(_inputs(sample, calibrated_profile, now))
        assert score.aps == 0.0
        assert score.alpha == 0.0
        assert score.state_estimate == pytest.approx(score.lrs)

    def test_fresh_checkin_dominates(self, stressed_sample, calibrated_profile, now):
        checkin = CheckinState(gad2_score=0, gad_updated=now)
        score = recompute(_inputs(stressed_sample, calibrated_profile, now, checkin=checkin))
        assert score.checkin_weight == 1.0
        assert score.final_score == pytest.approx(0.0)
        assert score.level == AnxietyLevel.LOW

    def test_decayed_checkin_blend(self, resting_sample, calibrated_profile, now):
        checkin = CheckinState(gad2_score=6, gad_updated=now - timedelta(hours=8))
        score = recompute(_inputs(resting_sample, calibrated_profile, now, checkin=checkin))
        w = math.exp(-1)
        assert score.final_score == pytest.approx(w * 100 + (1 - w) * 40.5)

    def test_placeholder_sample_uses_lifestyle(self, calibrated_profile, now):
        score = recompute(_inputs(PhysioSample.unavailable(now), calibrated_profile, now))
        assert score.alpha == 0.0
        assert score.final_score == pytest.approx(31.5)
        assert score.confidence == ConfidenceLevel.LOW

    def test_deterministic(self, stressed_sample, calibrated_profile, now):
        inputs = _inputs(stressed_sample, calibrated_profile, now)
        assert recompute(inputs) == recompute(inputs)

    def test_bounded_extremes(self, stressed_sample, calibrated_profile, now):
        worst = LifestyleSnapshot(
            sleep_debt_hours=8,
            sleep_efficiency=50,
            caffeine_mg_after_2pm=400,
            nicotine=True,
            is_exam_day=True,
            workload_hours=12,
            post_11pm_screen_minutes=180,
            daytime_screen_hours=12,
            skipped_meals=3,
            water_glasses=0,
        )
        for checkin in (
            CheckinState(),
            CheckinState(gad2_score=6, gad_updated=now),
            CheckinState(mood=0, mood_updated=now - timedelta(hours=2)),
        ):
            score = recompute(
                _inputs(stressed_sample, calibrated_profile, now, lifestyle=worst, checkin=checkin)
            )
            for value in (score.aps, score.lrs, score.cs, score.state_estimate, score.final_score):
                assert 0 <= value <= 100
            assert 0 <= score.alpha <= 1
            assert 0 <= score.checkin_weight <= 1


class TestTimestampNormalisation:
    """Aware timestamps are converted to naive UTC before scoring."""

    PHYSIO = {
        "hr": 62.0,
        "hrv": 55.0,
        "rr": 14.0,
        "eda_peaks_per_min": 1.2,
        "skin_temp_delta": 0.0,
        "timestamp": "2026-03-02T11:59:00Z",
    }

    def test_utc_checkin_in_json_snapshot(self, now):
        payload = {
            "physio": self.PHYSIO,
            "checkin": {"gad2_score": 6, "gad_updated": "2026-03-02T10:00:00Z"},
            "as_of": "2026-03-02T12:00:00",
        }
        inputs = ScoringInputs.model_validate_json(json.dumps(payload))
        assert inputs.checkin.gad_updated == now - timedelta(hours=2)
        assert inputs.physio.timestamp.tzinfo is None

        score = recompute(inputs)
        assert score.cs == pytest.approx(100.0)
        assert score.checkin_weight == pytest.approx(math.exp(-2 / 8))

    def test_mixed_aware_and_naive_stamps(self, now):
        payload = {
            "physio": self.PHYSIO,
            "checkin": {
                "gad2_score": 3,
                "gad_updated": "2026-03-02T12:00:00+02:00",
                "mood": 4,
                "mood_updated": "2026-03-02T09:00:00",
            },
            "as_of": "2026-03-02T12:00:00Z",
        }
        inputs = ScoringInputs.model_validate_json(json.dumps(payload))
        assert inputs.as_of == now

        # GAD-2 at 10:00 UTC is newer than mood at 09:00
        score = recompute(inputs)
        assert score.cs == pytest.approx(50.0)
        assert score.checkin_weight == pytest.approx(math.exp(-2 / 8))

    def test_aware_baseline_and_moment(self, now):
        aware = now.replace(tzinfo=timezone.utc)
        assert Baseline(mean=60.0, sd=5.0, last_updated=aware).last_updated == now
        assert AnxietyMoment(intensity=0.4, timestamp=aware).timestamp == now


class TestScoreReport:
    def test_report_contents(self, stressed_sample, calibrated_profile, now):
        report = score_inputs(_inputs(stressed_sample, calibrated_profile, now))
        assert report.timestamp == now
        assert report.physiology.hr == 95
        categories = [c.category for c in report.contributors]
        assert categories.count(ContributorCategory.LIFESTYLE) == 2
        assert categories.count(ContributorCategory.PHYSIOLOGY) == 2
        assert categories[-1] == ContributorCategory.CHECKIN
        assert "Anxiety:" in report.explanation
        assert "No recent check-in" in report.explanation

    def test_explanation_mentions_exercise(self, stressed_sample, calibrated_profile, now):
        sample = stressed_sample.model_copy(update={"is_exercising": True})
        report = score_inputs(_inputs(sample, calibrated_profile, now))
        assert "Exercise detected" in report.explanation

    def test_explanation_mentions_calibration(self, resting_sample, now):
        report = score_inputs(ScoringInputs(physio=resting_sample, as_of=now))
        assert "calibrating (0 of 5 signals)" in report.explanation


# ── Levels & confidence ───────────────────────────────────────


class TestAnxietyLevel:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0, AnxietyLevel.LOW),
            (30, AnxietyLevel.LOW),
            (30.1, AnxietyLevel.MODERATE),
            (50, AnxietyLevel.MODERATE),
            (70, AnxietyLevel.HIGH),
            (70.5, AnxietyLevel.VERY_HIGH),
            (100, AnxietyLevel.VERY_HIGH),
        ],
    )
    def test_bands(self, score, expected):
        assert anxiety_level(score) == expected


class TestConfidence:
    def test_good_and_fresh_is_high(self):
        assert confidence_score(SignalQuality.GOOD, 0.9, False) == pytest.approx(0.85)
        assert estimate_confidence(SignalQuality.GOOD, 0.9, False) == ConfidenceLevel.HIGH

    def test_exercise_lowers_to_medium(self):
        assert confidence_score(SignalQuality.GOOD, 0.9, True) == pytest.approx(0.75)
        assert estimate_confidence(SignalQuality.GOOD, 0.9, True) == ConfidenceLevel.MEDIUM

    def test_stale_checkin_is_medium(self):
        assert estimate_confidence(SignalQuality.GOOD, 0.2, False) == ConfidenceLevel.MEDIUM

    def test_poor_and_stale_is_low(self):
        assert confidence_score(SignalQuality.POOR, 0.0, False) == pytest.approx(0.425)
        assert estimate_confidence(SignalQuality.POOR, 0.0, False) == ConfidenceLevel.LOW

    def test_weight_at_threshold_is_not_fresh(self):
        assert confidence_score(SignalQuality.OK, 0.6, False) == pytest.approx(0.575)
