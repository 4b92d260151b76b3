"""
FastAPI application entry point for the Ekklesia roster backend.

This module initializes the FastAPI application with:
- Application state (WebSocket ConnectionManager, RosterNotifier)
- Optional schema bootstrap for zero-setup development
- CORS middleware for the frontend
- Exception handlers for consistent error responses
- Logging configuration

Environment Variables:
    EKKLESIA_DB_URL: Database URL (default: local PostgreSQL)
    EKKLESIA_ENV: Environment (production/development/test, default: development)
    EKKLESIA_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    EKKLESIA_CORS_ORIGINS, EKKLESIA_MAX_IMPORT_SIZE_MB,
    EKKLESIA_AUTO_CREATE_SCHEMA, EKKLESIA_WS_HEARTBEAT_SECONDS: see config.settings
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.db.database import dispose_engine, init_db
from backend.src.services.roster_notifier import RosterNotifier
from backend.src.utils.logging_config import init_logging, get_logger
from backend.src.utils.websocket import ConnectionManager


APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: create the schema if configured, create the connection
      registry and the roster notifier
    - Shutdown: deliver pending broadcasts, close every WebSocket,
      dispose of the database engine

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting Ekklesia backend application")

    settings = get_settings()
    if settings.auto_create_schema:
        init_db()

    app.state.websocket_manager = ConnectionManager()
    app.state.roster_notifier = RosterNotifier(app.state.websocket_manager)
    logger.info("Application state initialized successfully")

    yield

    logger.info("Shutting down Ekklesia backend application")
    await app.state.roster_notifier.drain()
    await app.state.websocket_manager.close_all()
    dispose_engine()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="Ekklesia Roster API",
    description="Event attendee rosters: manual entry, spreadsheet import with "
                "duplicate review, check-in, and live updates over WebSocket.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors raised outside request parsing.

    Args:
        request: HTTP request
        exc: Pydantic ValidationError

    Returns:
        JSON response with validation error details
    """
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Args:
        request: HTTP request
        exc: SQLAlchemy exception

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                       "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Args:
        request: HTTP request
        exc: Unhandled exception

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status, version and the number of connected WebSocket clients
    """
    manager: ConnectionManager = request.app.state.websocket_manager
    return {
        "status": "healthy",
        "service": "ekklesia-backend",
        "version": APP_VERSION,
        "websocket_clients": manager.get_connection_count(),
    }


# API routers
from backend.src.api import attendees, events, realtime

app.include_router(events.router, prefix="/api")
app.include_router(attendees.router, prefix="/api")
app.include_router(realtime.router, prefix="/api")


# Root endpoint


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        API metadata and documentation links
    """
    return {
        "message": "Ekklesia Roster API",
        "version": APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
    }
