"""Contributor ranking — the top risk drivers per category.

Impacts are shares of their own category total (lifestyle partials over
LRS, physiology partials over APS), plus one synthetic check-in
contributor expressed against the final score.

Trends compare each factor's weighted partial with the same factor in the
previous report.  With no previous report every trend is ``stable``.
"""

from __future__ import annotations

from enum import Enum

from anxiety_engine.scoring.lifestyle import weighted_lifestyle
from anxiety_engine.scoring.models import (
    AnxietyScore,
    Contributor,
    ContributorCategory,
    ContributorTrend,
    LifestyleBreakdown,
    PhysiologyBreakdown,
    ScoreReport,
)
from anxiety_engine.scoring.physiology import weighted_physiology

TOP_PER_CATEGORY = 2
TREND_TOLERANCE = 1.0  # weighted-risk points
CHECKIN_CONTRIBUTOR = "check-in"


def percent_contribution(part: float, total: float) -> float:
    """``part`` as a percentage of ``total``; 0 when ``total`` is not positive."""
    if total <= 0:
        return 0.0
    return part / total * 100


def trend_between(current: float, previous: float | None) -> ContributorTrend:
    if previous is None:
        return ContributorTrend.STABLE
    delta = current - previous
    if delta > TREND_TOLERANCE:
        return ContributorTrend.UP
    if delta < -TREND_TOLERANCE:
        return ContributorTrend.DOWN
    return ContributorTrend.STABLE


def _top(
    partials: dict[Enum, float],
    previous: dict[Enum, float],
    total: float,
    category: ContributorCategory,
) -> list[Contributor]:
    ranked = sorted(partials.items(), key=lambda kv: kv[1], reverse=True)
    return [
        Contributor(
            name=factor.value,
            category=category,
            impact=percent_contribution(partial, total),
            trend=trend_between(partial, previous.get(factor)),
        )
        for factor, partial in ranked[:TOP_PER_CATEGORY]
    ]


def rank_contributors(
    lifestyle: LifestyleBreakdown,
    physiology: PhysiologyBreakdown,
    score: AnxietyScore,
    previous: ScoreReport | None = None,
) -> list[Contributor]:
    """Top lifestyle and physiology drivers followed by the check-in contributor."""
    prev_lifestyle = weighted_lifestyle(previous.lifestyle) if previous else {}
    prev_physiology = weighted_physiology(previous.physiology) if previous else {}

    contributors = _top(
        weighted_lifestyle(lifestyle), prev_lifestyle, score.lrs, ContributorCategory.LIFESTYLE
    )
    contributors += _top(
        weighted_physiology(physiology), prev_physiology, score.aps, ContributorCategory.PHYSIOLOGY
    )

    checkin_term = score.checkin_weight * score.cs
    prev_checkin_term = (
        previous.score.checkin_weight * previous.score.cs if previous else None
    )
    contributors.append(
        Contributor(
            name=CHECKIN_CONTRIBUTOR,
            category=ContributorCategory.CHECKIN,
            impact=percent_contribution(score.cs, score.final_score),
            trend=trend_between(checkin_term, prev_checkin_term),
        )
    )
    return contributors
