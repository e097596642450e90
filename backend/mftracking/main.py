"""
Mutual Fund Tracking Backend — FastAPI Application Factory
===========================================================

What:  Creates and configures the FastAPI application instance.
Why:   Wires configuration, database, store, service, request pipeline,
       middleware and exception handlers in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (mftracking.main:app, or the `mftracking` console script) and tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │  ASGI middleware:  [Request ID] → [CORS]                 │
    │                                                          │
    │  Pipeline (api.API):                                     │
    │    [Logging] → handler → service → store → database      │
    │                                                          │
    │  Exception handlers:                                     │
    │    400 validation / invalid id / bad request             │
    │    404 not found (+ plain-text fallback for bad paths)   │
    │    409 duplicate entry   500 everything else             │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, ping the database (tenacity retries);
              a database that stays unreachable aborts startup.
    Shutdown: dispose the engine.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from mftracking import __version__
from mftracking.api import API, not_found_response
from mftracking.config import Settings, settings as default_settings
from mftracking.database import create_session_factory, dispose_engine, open_engine, ping
from mftracking.exceptions import MutualFundError, ValidationError
from mftracking.middleware.logging import logger_middleware
from mftracking.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    request_id_var,
)
from mftracking.repositories.mutual_fund_meta_repo import MutualFundMetaStore
from mftracking.routes import v1
from mftracking.services.mutual_fund_meta_service import MutualFundMetaService

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(cfg: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Startup Database Check
# ══════════════════════════════════════════════════════════════════════════

async def wait_for_database(app: FastAPI) -> None:
    """
    Ping the database, retrying with exponential backoff and jitter.

    Raises the last driver error once retry_max_attempts is exhausted;
    raised from lifespan, that stops the server.
    """
    cfg: Settings = app.state.settings
    retrying = AsyncRetrying(
        retry=retry_if_exception_type((SQLAlchemyError, OSError)),
        stop=stop_after_attempt(cfg.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=cfg.retry_min_wait,
            max=cfg.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            await ping(app.state.engine)
    logger.info("Ping.db status=success")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup before the yield, shutdown after it."""
    cfg: Settings = app.state.settings
    setup_logging(cfg)
    logger.info("Mutual fund tracking backend %s starting up...", __version__)

    try:
        await wait_for_database(app)
    except Exception:
        logger.critical("startup.db status=error; database unreachable", exc_info=True)
        await dispose_engine(app.state.engine)
        raise

    logger.info("Server ready at http://%s:%d", cfg.backend_host, cfg.backend_port)

    yield

    logger.info("shutdown status=stopping db")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Render raised errors as HTTP responses.

    Handler hierarchy:
        MutualFundError subclasses → their status_code
            4xx: error code + message (+ fields for ValidationError)
            5xx: generic message; message and context are logged only
        Starlette HTTPException 404 → "path not found: <url>" (plain text)
        Other Starlette HTTPException → FastAPI default
        Exception → 500 generic message, stack trace logged
    """

    @app.exception_handler(MutualFundError)
    async def handle_app_error(request: Request, exc: MutualFundError):
        rid = request_id_var.get("")
        content = {"error": exc.error_code, "message": exc.message, "request_id": rid}

        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
            content["message"] = GENERIC_SERVER_ERROR
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        if isinstance(exc, ValidationError):
            content["fields"] = [field.to_dict() for field in exc.fields]

        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return not_found_response(request)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs in ServerErrorMiddleware, outside RequestIDMiddleware: the
        # ContextVar is already reset and the id header is not added for us
        rid = getattr(request.state, "request_id", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        response = JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": GENERIC_SERVER_ERROR,
                "request_id": rid,
            },
        )
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        cfg: settings to use; the module-level singleton when omitted

    State on app.state:
        settings, engine, session_factory, write_lock, service
    """
    cfg = cfg or default_settings

    app = FastAPI(
        title="Mutual Fund Tracking API",
        description="CRUD access to mutual fund scheme metadata.",
        version=__version__,
        lifespan=lifespan,
    )

    engine = open_engine(cfg)
    session_factory = create_session_factory(engine)

    # One write transaction at a time, process-wide
    write_lock = asyncio.Lock()

    store = MutualFundMetaStore(session_factory, write_lock)
    service = MutualFundMetaService(store)

    app.state.settings = cfg
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.write_lock = write_lock
    app.state.service = service

    # ── ASGI Middleware ───────────────────────────────────────────────────
    # Last added runs first: RequestID → CORS → router
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Request Pipeline ──────────────────────────────────────────────────
    api = API(logger_middleware())
    v1.register(api, service)
    app.include_router(api.router)

    return app


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "mftracking.main:app",
        host=default_settings.backend_host,
        port=default_settings.backend_port,
        log_level=default_settings.log_level.lower(),
    )


# uvicorn expects `mftracking.main:app` to be importable
app = create_app()
