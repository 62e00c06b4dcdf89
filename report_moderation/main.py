"""Application entry point for the report moderation API."""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import create_session, init_db
from .routers import moderation_router, reports_router
from .services import ModerationError, ReportValidationError, SqlUserDirectory, retry_pending_enforcements
from .services.migrations import run_migrations_if_needed

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version
DISABLE_SWEEP = settings.disable_enforcement_sweep or os.getenv("PYTEST_CURRENT_TEST") is not None

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports_router)
app.include_router(moderation_router)

_sweep_task: asyncio.Task[None] | None = None
_sweep_stop = asyncio.Event()


@app.exception_handler(ModerationError)
async def _moderation_error_handler(request: Request, exc: ModerationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"kind": exc.kind, "detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=ReportValidationError.status_code,
        content={"kind": ReportValidationError.kind, "detail": "; ".join(problems) or "Invalid request"},
    )


def _sweep_once() -> int:
    db = create_session()
    try:
        return retry_pending_enforcements(db, SqlUserDirectory(db))
    finally:
        db.close()


async def _run_sweep_once() -> None:
    """Re-apply pending consequences in a worker thread."""

    try:
        await asyncio.to_thread(_sweep_once)
    except Exception:  # pragma: no cover - keep the loop alive
        logger.exception("Enforcement sweep failed")


async def _sweep_loop() -> None:
    interval = max(1, settings.enforcement_sweep_interval_seconds)
    while not _sweep_stop.is_set():
        await _run_sweep_once()
        try:
            await asyncio.wait_for(_sweep_stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


@app.on_event("startup")
async def _startup() -> None:
    """Ensure database schema and background tasks are ready before serving."""

    try:
        run_migrations_if_needed(database_url=settings.database_url)
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    if DISABLE_SWEEP:
        logger.info("Enforcement sweep disabled")
        return

    global _sweep_task
    if _sweep_task is None or _sweep_task.done():
        _sweep_stop.clear()
        _sweep_task = asyncio.create_task(_sweep_loop())


@app.on_event("shutdown")
async def _shutdown() -> None:
    if DISABLE_SWEEP:
        return

    _sweep_stop.set()
    if _sweep_task is not None:
        try:
            await _sweep_task
        except asyncio.CancelledError:  # pragma: no cover
            pass


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
