"""Tests for the synthetic feed and the command-line entrypoint."""

from __future__ import annotations

import json
import random
from datetime import timedelta

import pytest

from anxiety_engine.main import main
from anxiety_engine.simulation import demo_sample, random_walk_step, simulate


class TestRandomWalk:
    def test_step_stays_in_range(self, now):
        rng = random.Random(7)
        sample = demo_sample(now).model_copy(update={"eda_peaks_per_min": 0.0, "motion_score": 1.0})
        for i in range(200):
            sample = random_walk_step(sample, rng, now + timedelta(minutes=i))
            assert sample.eda_peaks_per_min >= 0
            assert 0 <= sample.motion_score <= 1
        assert sample.timestamp == now + timedelta(minutes=199)

    def test_step_keeps_flags(self, now):
        sample = demo_sample(now)
        stepped = random_walk_step(sample, random.Random(1), now)
        assert stepped.is_exercising == sample.is_exercising
        assert stepped.signal_quality == sample.signal_quality


class TestSimulate:
    def test_seeded_runs_are_reproducible(self, settings, now):
        _, first = simulate(20, seed=42, start=now, settings=settings)
        _, second = simulate(20, seed=42, start=now, settings=settings)
        assert [r.score.final_score for r in first] == [r.score.final_score for r in second]

    def test_report_per_tick(self, settings, now):
        session, reports = simulate(10, seed=3, start=now, settings=settings)
        assert len(reports) == 11
        assert reports[-1].timestamp == now + timedelta(minutes=10)
        assert session.baselines.is_calibrated()
        for r in reports:
            assert 0 <= r.score.final_score <= 100


class TestCli:
    def test_no_command_exits(self):
        with pytest.raises(SystemExit):
            main([])

    def test_simulate_export(self, tmp_path):
        out = tmp_path / "sim.json"
        main(["simulate", "--ticks", "5", "--seed", "11", "--export", str(out)])
        records = json.loads(out.read_text(encoding="utf-8"))
        assert len(records) == 6
