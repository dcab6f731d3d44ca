"""Middleware — CORS, session API key, request context and error handling.

Only ``/sessions`` routes carry user data, so they are the only routes
behind the API key.  Requests under ``/sessions/{user_id}`` bind
``request_id`` and ``user_id`` into the structlog context, so engine events
logged while serving them (``checkin.submitted``, ``scoring.recomputed``)
carry the same keys as the ``http.request`` line.
"""

from __future__ import annotations

import hmac
import re
import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from anxiety_engine.config import Settings, get_settings

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SESSIONS_PREFIX = "/sessions"

_PLACEHOLDER_KEYS = ("change-me-to-a-random-secret", "")
_SESSION_PATH = re.compile(r"^/sessions/(?P<user_id>[^/]+)(?:/(?P<resource>[^/]+(?:/[^/]+)*))?/?$")


def parse_origins(origins_raw: str) -> list[str]:
    """Split ``settings.cors_origins`` (comma-separated, or ``"*"``)."""
    origins_raw = origins_raw.strip()
    if origins_raw == "*":
        return ["*"]
    return [o.strip() for o in origins_raw.split(",") if o.strip()]


def session_route(path: str) -> tuple[str | None, str | None]:
    """Split ``/sessions/{user_id}/{resource}`` into its parts.

    ``/sessions/P001/physio/batch`` gives ``("P001", "physio/batch")`` and
    ``/sessions/P001`` gives ``("P001", "session")``.  Paths outside a
    single session give ``(None, None)``.
    """
    match = _SESSION_PATH.match(path)
    if match is None:
        return None, None
    return match["user_id"], match["resource"] or "session"


def auth_enabled(settings: Settings) -> bool:
    return settings.api_secret_key not in _PLACEHOLDER_KEYS


# ── Session API key ───────────────────────────────────────────


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Require ``X-API-Key`` or ``Authorization: Bearer <key>`` on ``/sessions``.

    Health and the OpenAPI docs stay public.  Disabled while
    ``api_secret_key`` is the placeholder.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not auth_enabled(settings) or not request.url.path.startswith(SESSIONS_PREFIX):
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or _extract_bearer(
            request.headers.get("Authorization", "")
        )
        if not hmac.compare_digest(api_key.encode(), settings.api_secret_key.encode()):
            user_id, _ = session_route(request.url.path)
            logger.warning("http.unauthorized", path=request.url.path, user_id=user_id)
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid or missing API key."},
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)


# ── Request context ───────────────────────────────────────────


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request / user ids for the request's log events and log session calls.

    The request id is taken from ``X-Request-ID`` when the caller sends one
    and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        user_id, resource = session_route(request.url.path)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        if user_id is not None:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path.startswith(SESSIONS_PREFIX):
            logger.info(
                "http.request",
                method=request.method,
                request_id=request_id,
                user_id=user_id,
                resource=resource or "sessions",
                status=response.status_code,
                duration_ms=duration_ms,
            )
        return response


# ── Global error handler ─────────────────────────────────────


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a 500 that names the request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = structlog.contextvars.get_contextvars().get("request_id")
            logger.exception("http.unhandled_error", path=request.url.path, error=str(exc))
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error.", "request_id": request_id},
            )


# ── Setup helper ──────────────────────────────────────────────


def setup_middleware(app: FastAPI) -> None:
    """Wire all middleware into the FastAPI application.

    Outermost first: request context, error handler, session auth, CORS.
    """
    settings = get_settings()
    # Added innermost → outermost (Starlette reverses the stack)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_origins(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(SessionAuthMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)


def _extract_bearer(auth_header: str) -> str:
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return ""
