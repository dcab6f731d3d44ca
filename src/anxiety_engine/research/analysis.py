"""Analysis helpers — pandas-based views over a session's score history."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Sequence

import pandas as pd

from anxiety_engine.scoring.models import ContributorCategory, ScoreReport

_COLUMNS = [
    "final_score",
    "aps",
    "lrs",
    "cs",
    "alpha",
    "checkin_weight",
    "confidence",
    "level",
    "top_factor",
]


def _top_factor(report: ScoreReport) -> str | None:
    """Highest-impact lifestyle or physiology contributor."""
    candidates = [
        c for c in report.contributors if c.category != ContributorCategory.CHECKIN
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda c: c.impact).name


def reports_to_dataframe(reports: Sequence[ScoreReport]) -> pd.DataFrame:
    """Load score reports into a :class:`pandas.DataFrame`.

    The ``timestamp`` column is set as a sorted ``DatetimeIndex``.
    """
    records = [
        {
            "timestamp": r.timestamp,
            "final_score": r.score.final_score,
            "aps": r.score.aps,
            "lrs": r.score.lrs,
            "cs": r.score.cs,
            "alpha": r.score.alpha,
            "checkin_weight": r.score.checkin_weight,
            "confidence": r.score.confidence.value,
            "level": r.score.level.value,
            "top_factor": _top_factor(r),
        }
        for r in reports
    ]
    if not records:
        return pd.DataFrame(columns=_COLUMNS)

    df = pd.DataFrame(records)
    df["timestamp"] = pd.to_datetime(df["timestamp"])
    return df.set_index("timestamp").sort_index()


def compute_summary(df: pd.DataFrame, column: str = "final_score") -> dict[str, Any]:
    """Return summary statistics for one numeric column of a history frame."""
    if df.empty or column not in df.columns:
        return {"count": 0}

    series = df[column].astype(float)
    return {
        "count": int(series.count()),
        "mean": round(float(series.mean()), 2),
        "std": round(float(series.std()), 2) if series.count() > 1 else 0.0,
        "min": float(series.min()),
        "max": float(series.max()),
        "median": float(series.median()),
        "q25": float(series.quantile(0.25)),
        "q75": float(series.quantile(0.75)),
    }


def _most_common(values: pd.Series) -> str | None:
    modes = values.dropna().mode()
    return None if modes.empty else str(modes.iat[0])


def daily_scores(df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate a history frame into one row per calendar day.

    Columns: ``score``, ``aps``, ``lrs``, ``cs`` (daily means), ``top_factor``
    (most frequent top contributor) and ``count``.
    """
    if df.empty:
        return pd.DataFrame(columns=["score", "aps", "lrs", "cs", "top_factor", "count"])

    grouped = df.groupby(df.index.normalize())
    daily = grouped.agg(
        score=("final_score", "mean"),
        aps=("aps", "mean"),
        lrs=("lrs", "mean"),
        cs=("cs", "mean"),
        count=("final_score", "count"),
    )
    daily["top_factor"] = grouped["top_factor"].agg(_most_common)
    daily.index.name = "date"
    return daily[["score", "aps", "lrs", "cs", "top_factor", "count"]]


def trend_points(
    df: pd.DataFrame,
    *,
    now: datetime | None = None,
    hours: int = 12,
) -> list[dict[str, Any]]:
    """Hourly mean score for the last ``hours`` hours, labelled ``-11h`` … ``now``.

    Hours without any report carry ``score=None``.
    """
    now = now or datetime.utcnow()
    current_hour = pd.Timestamp(now).floor("h")

    hourly = pd.Series(dtype=float)
    if not df.empty:
        hourly = df["final_score"].astype(float).resample("1h").mean()

    points: list[dict[str, Any]] = []
    for offset in range(hours - 1, -1, -1):
        bucket = current_hour - timedelta(hours=offset)
        value = hourly.get(bucket)
        points.append(
            {
                "label": "now" if offset == 0 else f"-{offset}h",
                "hour": bucket.to_pydatetime(),
                "score": None if value is None or pd.isna(value) else round(float(value), 2),
            }
        )
    return points
