"""Tests for contributor ranking and trend tagging."""

from __future__ import annotations

import pytest

from anxiety_engine.scoring.contributors import (
    CHECKIN_CONTRIBUTOR,
    percent_contribution,
    rank_contributors,
    trend_between,
)
from anxiety_engine.scoring.fusion import score_inputs
from anxiety_engine.scoring.models import (
    CheckinState,
    ContributorCategory,
    ContributorTrend,
    LifestyleSnapshot,
    ScoringInputs,
)


@pytest.fixture
def busy_lifestyle() -> LifestyleSnapshot:
    # sleep 95 (28.5 weighted), context 85 (12.75 weighted) clearly lead
    return LifestyleSnapshot(sleep_debt_hours=5, is_exam_day=True)


class TestHelpers:
    def test_percent(self):
        assert percent_contribution(5, 20) == pytest.approx(25.0)

    def test_zero_total(self):
        assert percent_contribution(5, 0) == 0.0

    @pytest.mark.parametrize(
        ("current", "previous", "expected"),
        [
            (10.0, None, ContributorTrend.STABLE),
            (10.0, 10.5, ContributorTrend.STABLE),
            (11.0, 10.0, ContributorTrend.STABLE),
            (12.0, 10.0, ContributorTrend.UP),
            (8.0, 10.0, ContributorTrend.DOWN),
        ],
    )
    def test_trend(self, current, previous, expected):
        assert trend_between(current, previous) == expected


class TestRanking:
    def test_order_and_shape(self, stressed_sample, calibrated_profile, busy_lifestyle, now):
        report = score_inputs(
            ScoringInputs(
                baselines=calibrated_profile,
                physio=stressed_sample,
                lifestyle=busy_lifestyle,
                as_of=now,
            )
        )
        names = [c.name for c in report.contributors]
        assert names[:2] == ["sleep", "context"]
        # hr and eda both weigh 0.2 x 95 = 19
        assert set(names[2:4]) == {"hr", "eda"}
        assert names[4] == CHECKIN_CONTRIBUTOR
        assert len(names) == 5

    def test_lifestyle_impact_is_share_of_lrs(self, stressed_sample, calibrated_profile, busy_lifestyle, now):
        report = score_inputs(
            ScoringInputs(
                baselines=calibrated_profile,
                physio=stressed_sample,
                lifestyle=busy_lifestyle,
                as_of=now,
            )
        )
        sleep = report.contributors[0]
        assert sleep.category == ContributorCategory.LIFESTYLE
        assert sleep.impact == pytest.approx(28.5 / report.score.lrs * 100)

    def test_checkin_impact_against_final(self, resting_sample, calibrated_profile, now):
        checkin = CheckinState(gad2_score=3, gad_updated=now)
        report = score_inputs(
            ScoringInputs(
                baselines=calibrated_profile, physio=resting_sample, checkin=checkin, as_of=now
            )
        )
        contributor = report.contributors[-1]
        assert contributor.category == ContributorCategory.CHECKIN
        # fresh check-in: final == CS, so the check-in explains everything
        assert contributor.impact == pytest.approx(100.0)

    def test_exercise_gives_zero_physiology_impact(self, stressed_sample, calibrated_profile, now):
        sample = stressed_sample.model_copy(update={"is_exercising": True})
        report = score_inputs(
            ScoringInputs(baselines=calibrated_profile, physio=sample, as_of=now)
        )
        physiology = [c for c in report.contributors if c.category == ContributorCategory.PHYSIOLOGY]
        assert len(physiology) == 2
        assert all(c.impact == 0.0 for c in physiology)

    def test_without_previous_everything_is_stable(self, stressed_sample, calibrated_profile, now):
        report = score_inputs(
            ScoringInputs(baselines=calibrated_profile, physio=stressed_sample, as_of=now)
        )
        assert {c.trend for c in report.contributors} == {ContributorTrend.STABLE}


class TestTrends:
    def test_rising_and_falling_factors(self, resting_sample, stressed_sample, calibrated_profile, now):
        calm = score_inputs(
            ScoringInputs(baselines=calibrated_profile, physio=resting_sample, as_of=now)
        )
        worse = score_inputs(
            ScoringInputs(
                baselines=calibrated_profile,
                physio=stressed_sample,
                lifestyle=LifestyleSnapshot(sleep_debt_hours=5, is_exam_day=True),
                as_of=now,
            ),
            previous=calm,
        )
        trends = {c.name: c.trend for c in worse.contributors}
        assert trends["sleep"] == ContributorTrend.UP
        assert trends["hr"] == ContributorTrend.UP

        better = rank_contributors(calm.lifestyle, calm.physiology, calm.score, previous=worse)
        trends = {c.name: c.trend for c in better}
        assert trends["context"] == ContributorTrend.DOWN

    def test_checkin_trend_uses_effective_term(self, resting_sample, calibrated_profile, now):
        before = score_inputs(
            ScoringInputs(baselines=calibrated_profile, physio=resting_sample, as_of=now)
        )
        after = score_inputs(
            ScoringInputs(
                baselines=calibrated_profile,
                physio=resting_sample,
                checkin=CheckinState(gad2_score=4, gad_updated=now),
                as_of=now,
            ),
            previous=before,
        )
        assert after.contributors[-1].trend == ContributorTrend.UP
