"""Scoring session routes — push inputs, read scores, baselines, history and interventions."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pandas as pd
from fastapi import APIRouter, HTTPException, Query

from anxiety_engine.api.schemas import (
    CheckinRequest,
    LifestylePatch,
    MomentRequest,
    PhysioRequest,
)
from anxiety_engine.research.analysis import (
    compute_summary,
    daily_scores,
    reports_to_dataframe,
    trend_points,
)
from anxiety_engine.scoring.interventions import recommend
from anxiety_engine.scoring.session import ScoringSession, SessionRegistry
from anxiety_engine.streaming.pipeline import PhysioEvent

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _registry() -> SessionRegistry:
    from anxiety_engine.api.server import _registry as registry

    if registry is None:
        raise HTTPException(503, "Session registry not ready.")
    return registry


def _existing(user_id: str) -> ScoringSession:
    session = _registry().get(user_id)
    if session is None:
        raise HTTPException(404, f"No scoring session for user '{user_id}'.")
    return session


def _daily_records(daily: pd.DataFrame) -> list[dict[str, Any]]:
    return [
        {
            "date": day.date().isoformat(),
            "score": round(float(row["score"]), 2),
            "aps": round(float(row["aps"]), 2),
            "lrs": round(float(row["lrs"]), 2),
            "cs": round(float(row["cs"]), 2),
            "top_factor": row["top_factor"],
            "count": int(row["count"]),
        }
        for day, row in daily.iterrows()
    ]


# ── Sessions ──────────────────────────────────────────────────


@router.get("")
async def list_sessions():
    registry = _registry()
    return {"count": len(registry), "user_ids": registry.user_ids}


@router.delete("/{user_id}")
async def delete_session(user_id: str):
    if not _registry().remove(user_id):
        raise HTTPException(404, f"No scoring session for user '{user_id}'.")
    return {"deleted": True}


@router.get("/{user_id}/score")
async def get_score(user_id: str, refresh: bool = Query(False)):
    """Latest score report.  ``refresh=true`` re-evaluates check-in decay at now."""
    session = _existing(user_id)
    report = session.refresh() if refresh else session.report
    return report.model_dump(mode="json")


# ── Inputs ────────────────────────────────────────────────────


@router.post("/{user_id}/physio")
async def push_physio(user_id: str, req: PhysioRequest):
    """Apply one physiology sample synchronously and return the new report."""
    session = _registry().get_or_create(user_id)
    report = session.on_new_physio_sample(req.to_sample(datetime.utcnow()))
    return report.model_dump(mode="json")


@router.post("/{user_id}/physio/batch", status_code=202)
async def push_physio_batch(user_id: str, samples: list[PhysioRequest]):
    """Queue a batch of samples; they are applied in order by the pipeline."""
    from anxiety_engine.api.server import _pipeline

    if _pipeline is None:
        raise HTTPException(503, "Pipeline not ready.")

    now = datetime.utcnow()
    _registry().get_or_create(user_id)
    events = [PhysioEvent(user_id=user_id, sample=s.to_sample(now)) for s in samples]
    await _pipeline.publish_batch(events)
    return {"count": len(events), "queued": True}


@router.patch("/{user_id}/lifestyle")
async def patch_lifestyle(user_id: str, patch: LifestylePatch):
    session = _registry().get_or_create(user_id)
    changes = patch.changes()
    report = session.on_lifestyle_edit(lambda ls: ls.model_copy(update=changes))
    return report.model_dump(mode="json")


@router.post("/{user_id}/checkin")
async def submit_checkin(user_id: str, req: CheckinRequest):
    session = _registry().get_or_create(user_id)
    report = session.on_checkin_submit(gad2=req.gad2, mood=req.mood)
    return report.model_dump(mode="json")


@router.post("/{user_id}/moments", status_code=201)
async def add_moment(user_id: str, req: MomentRequest):
    session = _registry().get_or_create(user_id)
    moment = session.add_anxiety_moment(note=req.note, intensity=req.intensity)
    return moment.model_dump(mode="json")


# ── Read-side views ───────────────────────────────────────────


@router.get("/{user_id}/baselines")
async def get_baselines(user_id: str):
    """Current personal baselines and calibration progress."""
    session = _existing(user_id)
    return {
        "user_id": user_id,
        "baselines": session.baselines.model_dump(mode="json"),
        "calibration": session.calibration_progress(),
        "last_rest_at": session.last_rest_at,
    }


@router.get("/{user_id}/history")
async def get_history(
    user_id: str,
    hours: int = Query(24 * 7, ge=1, le=24 * 90),
):
    """Score summary, per-day aggregates and the 12-hour trend."""
    session = _existing(user_id)
    now = datetime.utcnow()
    start = now - timedelta(hours=hours)

    reports = [r for r in session.history if r.timestamp >= start]
    df = reports_to_dataframe(reports)
    return {
        "user_id": user_id,
        "count": len(reports),
        "summary": compute_summary(df),
        "daily": _daily_records(daily_scores(df)),
        "trend": trend_points(df, now=now),
    }


@router.get("/{user_id}/interventions")
async def get_interventions(user_id: str, limit: int | None = Query(None, ge=1)):
    """Relief exercises ordered for the session's current score."""
    score = _existing(user_id).report.score
    return {
        "user_id": user_id,
        "level": score.level.value,
        "final_score": round(score.final_score, 2),
        "interventions": [
            item.model_dump(mode="json") for item in recommend(score, limit=limit)
        ],
    }
