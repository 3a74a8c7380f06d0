"""
Taskboard Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app(settings)` builds the Database and FileService from one
       Settings object, stores all three on `app.state`, and wires
       middleware, exception handlers, routers and the static mount.
Who:   uvicorn (`taskboard.main:app`), the `taskboard` console script, tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌────────────┐  │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│    CORS    │  │
    │  └──────────┘ └──────────┘ └──────┘ └────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  /api/users[...]   /api/tasks   /health   /static   │
    │                                                     │
    │  Exception Handlers → error_handlers.classify()     │
    │  422 field errors │ 415 │ 404 │ 500 generic         │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, ensure the static root exists
    Shutdown: dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from taskboard import __version__
from taskboard.config import Settings, get_settings
from taskboard.database import Database
from taskboard.error_handlers import register_exception_handlers
from taskboard.middleware.logging import RequestLoggingMiddleware
from taskboard.middleware.request_id import RequestIDMiddleware
from taskboard.routes import health, tasks, users
from taskboard.services.file_service import FileService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] taskboard.access: GET /api/users 200 4.2ms [a1b2c3d4] ...
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request / per-statement chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Taskboard Backend %s starting up...", __version__)

    static_root = Path(settings.static_root)
    static_root.mkdir(parents=True, exist_ok=True)
    logger.info("Static root: %s (served at %s)", static_root.resolve(), settings.static_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Taskboard Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Assemble the application from one Settings object.

    Args:
        settings: Explicit configuration (tests); defaults to the environment.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Taskboard API",
        description="Users and their tasks over REST, with image uploads.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared state ──────────────────────────────────────────────────────
    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.file_service = FileService(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(health.router)

    # Clients build image URLs as STATIC_URL + "/" + user.image
    app.mount(
        settings.static_url,
        StaticFiles(directory=settings.static_root, check_dir=False),
        name="static",
    )

    return app


def run() -> None:
    """Console-script entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `taskboard.main:app` to be importable
app = create_app()
