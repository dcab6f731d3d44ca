"""FastAPI application — session endpoints and background services.

This module wires together:
- CORS + API key auth, request logging and error-handling middleware
- The in-memory session registry
- The streaming pipeline that applies queued physiology samples
- Scoring session routes
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from anxiety_engine.api.middleware import setup_middleware
from anxiety_engine.api.routes.sessions import router as sessions_router
from anxiety_engine.config import get_settings
from anxiety_engine.scoring.session import SessionRegistry
from anxiety_engine.streaming.pipeline import PhysioEvent, StreamPipeline

logger = structlog.get_logger(__name__)

# ── Shared state (initialised in lifespan) ────────────────────

_registry: SessionRegistry | None = None
_pipeline: StreamPipeline | None = None
_pipeline_task: asyncio.Task | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hooks."""
    global _registry, _pipeline, _pipeline_task

    settings = get_settings()

    # 1. Sessions
    _registry = SessionRegistry(settings)

    # 2. Streaming pipeline feeding sessions
    _pipeline = StreamPipeline(maxsize=settings.pipeline_queue_size)

    async def _on_sample(event: PhysioEvent) -> None:
        """Pipeline consumer: apply the sample to the user's session."""
        session = _registry.get_or_create(event.user_id)  # type: ignore[union-attr]
        session.on_new_physio_sample(event.sample)

    _pipeline.add_consumer(_on_sample)
    _pipeline_task = asyncio.create_task(_pipeline.start())

    logger.info("server.started", port=settings.api_port)

    yield  # ← application runs

    # Shutdown
    if _pipeline:
        await _pipeline.stop()
    if _pipeline_task:
        _pipeline_task.cancel()
    logger.info("server.stopped", sessions=len(_registry))


app = FastAPI(
    title="Anxiety Engine API",
    description="Rule-based anxiety scoring from wearable physiology, lifestyle and check-ins.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────
setup_middleware(app)

# ── Routers ───────────────────────────────────────────────────
app.include_router(sessions_router)


# ── Health ────────────────────────────────────────────────────

@app.get("/health", tags=["system"])
async def health():
    return {
        "status": "ok",
        "sessions": len(_registry) if _registry else 0,
        "pipeline_pending": _pipeline.pending if _pipeline else 0,
    }
