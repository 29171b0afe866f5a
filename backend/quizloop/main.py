"""FastAPI application entry point.

This module wires together the API routers, configures middleware,
translates attempt-engine errors into JSON responses and starts the
background housekeeping task.
"""

import os
import logging
import asyncio
from datetime import timedelta
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from quizloop.routes import quizzes, attempts, users, settings
from quizloop.database import create_db_and_tables, async_session
from quizloop.crud import get_settings, ensure_badge_rules, ensure_quiz_content
from quizloop.errors import (
    QuizEngineError,
    ValidationError,
    UnknownAttemptError,
    AlreadyStartedError,
)

# Basic logging configuration.  The log level can be controlled with an
# environment variable so deployments can adjust verbosity without code
# changes.
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL))
logger = logging.getLogger(__name__)

# Finished attempts stay in memory this long so repeated submits still
# return the cached outcome.
ATTEMPT_RETENTION_MINUTES = int(os.getenv("ATTEMPT_RETENTION_MINUTES", "60"))
PURGE_INTERVAL_SECONDS = 60 * 5

app = FastAPI(title="Quizloop", docs_url=None)


def custom_openapi():
    """Generate an OpenAPI schema that is aware of our `/api` proxy prefix."""

    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema["servers"] = [{"url": "/api"}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    """Initialize the database, seed content and start background tasks."""

    await create_db_and_tables()
    async with async_session() as session:
        await get_settings(session)
        await ensure_badge_rules(session)
        await ensure_quiz_content(session)
    attempts.registry.retention = timedelta(minutes=ATTEMPT_RETENTION_MINUTES)
    # An attempt whose timer runs out is recorded even if no client submits.
    attempts.registry.add_listener(attempts.recorder.schedule)
    asyncio.create_task(purge_finished_attempts_task())


async def purge_finished_attempts_task():
    """Background coroutine that drops finished attempts from memory."""

    logger.info("Starting attempt housekeeping task")
    while True:
        try:
            attempts.registry.purge_finished()
        except Exception as exc:
            logger.exception("Attempt housekeeping failed: %s", exc)
        await asyncio.sleep(PURGE_INTERVAL_SECONDS)


app.include_router(quizzes.router)
app.include_router(attempts.router)
app.include_router(users.router)
app.include_router(settings.router)


@app.get("/docs", include_in_schema=False)
async def custom_swagger_ui_html():
    """Serve the interactive docs with the correct API prefix."""

    return get_swagger_ui_html(openapi_url="/api/openapi.json", title="API Docs")


@app.get("/")
async def read_root():
    async with async_session() as session:
        s = await get_settings(session)
        name = s.site_name
    return {"message": f"Welcome to {name} API"}


def _status_for(exc: QuizEngineError) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, UnknownAttemptError):
        return 404
    return 409


@app.exception_handler(QuizEngineError)
async def quiz_engine_exception_handler(request: Request, exc: QuizEngineError):
    """Report engine errors as ``{"code", "message"}`` bodies."""
    content = {"code": exc.code, "message": exc.message}
    if isinstance(exc, AlreadyStartedError) and exc.attempt_id:
        content["attempt_id"] = exc.attempt_id
    return JSONResponse(status_code=_status_for(exc), content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler that logs the stack trace once."""
    logger.exception("Unhandled error during request %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "code": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )
