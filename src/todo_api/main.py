from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from .errors import RequestAborted, StoreUnavailable
from .middleware import RequestIDMiddleware, RequestLoggingMiddleware, request_id_var
from .repositories import Repository, connect
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "Create, list, update and delete todo items."},
]


def setup_logging(level: str) -> None:
    """
    Configure the root logger for the whole process. Called by the entry point,
    never by create_app, so embedding or testing the app keeps its handlers.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # uvicorn's access log duplicates RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to MongoDB on startup unless a repository was injected, and close
    the client on shutdown. An unreachable store aborts startup.
    """
    settings: Settings = app.state.settings
    client = None
    if app.state.repository is None:
        try:
            client, app.state.repository = await connect(settings)
        except StoreUnavailable as e:
            logger.error("Failed to connect to MongoDB at startup: %s", e.context)
            raise
    logger.info("Todo API ready on http://%s:%d", settings.host, settings.port)

    yield

    logger.info("Todo API shutting down")
    if client is not None:
        client.close()
        app.state.repository = None
    logger.info("Shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Turn anything the handlers did not map into a 500 with the usual error body.
    A request whose client disconnected ends with an empty 499.
    """

    @app.exception_handler(RequestAborted)
    async def handle_request_aborted(request: Request, exc: RequestAborted) -> Response:
        logger.info(
            "[%s] Client disconnected during %s %s",
            request_id_var.get(),
            request.method,
            request.url.path,
        )
        return Response(status_code=499)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            request_id_var.get(),
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# PUBLIC_INTERFACE
def create_app(
    repository: Optional[Repository] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        repository: storage backend to use. When omitted, a MongoRepository is
            connected during startup from the settings.
        settings: configuration; read from the environment when omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Todo API",
        description="HTTP API for managing todo items stored in MongoDB.",
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository

    allow_all = settings.cors_allow_origins == ["*"] or len(settings.cors_allow_origins) == 0
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def home() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon() -> FileResponse:
        return FileResponse(STATIC_DIR / "favicon.ico", media_type="image/x-icon")

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"])
    async def health_check(request: Request) -> JSONResponse:
        """
        Report whether the document store answers a ping.
        """
        try:
            await request.app.state.repository.ping()
        except StoreUnavailable:
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return JSONResponse(status_code=200, content={"status": "ok"})

    app.include_router(todos_router.router)
    return app
