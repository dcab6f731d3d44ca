"""Data export utilities for score histories."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

import structlog

from anxiety_engine.scoring.models import LifestyleFactor, PhysiologyFactor, ScoreReport

logger = structlog.get_logger(__name__)

_SCORE_FIELDS = ["final_score", "aps", "lrs", "cs", "state_estimate", "alpha", "checkin_weight"]


def export_reports_csv(reports: Sequence[ScoreReport], output_path: str | Path) -> Path:
    """Export score reports to a flat CSV file, one row per report.

    Returns the resolved output path.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    lifestyle_cols = [f"lifestyle_{f.value}" for f in LifestyleFactor]
    physiology_cols = [f"physiology_{f.value}" for f in PhysiologyFactor]

    with output.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["id", "timestamp", *_SCORE_FIELDS, "confidence", "level",
             *lifestyle_cols, *physiology_cols, "model_version"]
        )
        for r in reports:
            writer.writerow([
                r.id,
                r.timestamp.isoformat(),
                *(getattr(r.score, name) for name in _SCORE_FIELDS),
                r.score.confidence.value,
                r.score.level.value,
                *(r.lifestyle.risk(factor) for factor in LifestyleFactor),
                *(r.physiology.risk(factor) for factor in PhysiologyFactor),
                r.model_version,
            ])

    logger.info("export.csv_written", path=str(output), rows=len(reports))
    return output


def export_reports_json(reports: Sequence[ScoreReport], output_path: str | Path) -> Path:
    """Export full score reports (contributors and explanation included) to JSON."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    records = [r.model_dump(mode="json") for r in reports]
    with output.open("w", encoding="utf-8") as f:
        json.dump(records, f, indent=2)

    logger.info("export.json_written", path=str(output), rows=len(records))
    return output
