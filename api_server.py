#!/usr/bin/env python3
"""
MIC Service API Server

Endpoints:
- /api/auth         : registration, login, own profile
- /api/alerts       : alert lifecycle (file, list, work, resolve)
- /api/machines     : machine registry, status and metrics
- /api/maintenance  : maintenance scheduling
- /api/feedback     : feedback submission and admin triage
- /api/users        : account management (admin)
- /health           : database health for load balancers
- /docs             : Swagger UI (auto-generated)

Every response, success or error, uses the {data, meta} envelope from
schemas.response.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from alerts_api import alerts_router
from auth_api import auth_router, limiter
from config import get_settings, validate_startup
from core.exceptions import MicServiceError
from database import check_database_health, init_database, shutdown_database
from feedback_api import feedback_router
from logger import RequestContextMiddleware, configure_logging, get_logger
from machines_api import machines_router
from maintenance_api import maintenance_router
from schemas.response import ErrorResponse, ORJSONResponse
from users_api import users_router

settings = get_settings()
logger = get_logger("mic.api")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup, cleanup on shutdown."""
    configure_logging(
        environment=settings.environment,
        log_level=settings.log.level,
        json_format=settings.log.format == "json",
    )
    validate_startup()

    await init_database(create_tables=settings.database.create_tables)
    logger.info("Server ready", app=settings.app_name, version=settings.app_version)

    yield

    logger.info("Shutting down")
    await shutdown_database()


# =============================================================================
# FASTAPI APP
# =============================================================================
app = FastAPI(
    title=settings.app_name,
    description="Machine registry, alert lifecycle and maintenance scheduling API.",
    version=settings.app_version,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

app.state.limiter = limiter


def _error(status_code: int, message: str, code: str, details=None, headers=None) -> ORJSONResponse:
    body = ErrorResponse(error=message, code=code, details=details)
    return ORJSONResponse(status_code=status_code, content=body, headers=headers)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
@app.exception_handler(MicServiceError)
async def service_error_handler(request: Request, exc: MicServiceError):
    """Domain errors carry their own HTTP status."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        path=request.url.path,
        code=type(exc).__name__,
        status_code=exc.status_code,
        error=exc.message,
    )
    return _error(exc.status_code, exc.message, type(exc).__name__, exc.details or None)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return _error(status.HTTP_400_BAD_REQUEST, message, "ValidationError", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions - pass through with proper status."""
    return _error(
        exc.status_code,
        str(exc.detail),
        f"HTTP{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return _error(
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Too many requests: {exc.detail}",
        "RateLimitExceeded",
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catches all unhandled exceptions.
    Logs the full trace but returns a clean error with a reference id.
    """
    error_id = str(uuid.uuid4())
    logger.exception(
        "Unhandled error",
        reference_id=error_id,
        path=request.url.path,
        method=request.method,
    )
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"An internal error occurred. Reference ID: {error_id}",
        "InternalServerError",
    )


# =============================================================================
# MIDDLEWARE & ROUTERS
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)

app.include_router(auth_router)
app.include_router(alerts_router)
app.include_router(machines_router)
app.include_router(maintenance_router)
app.include_router(feedback_router)
app.include_router(users_router)


# =============================================================================
# SYSTEM ENDPOINTS
# =============================================================================
@app.get("/", tags=["System"])
async def root():
    """Root endpoint to verify connectivity."""
    return {"message": f"{settings.app_name} is running", "docs_url": "/docs"}


@app.get("/health", tags=["System"])
async def health_check():
    """
    Public health check endpoint for load balancers.
    Checks database connectivity and pool status.
    """
    health = await check_database_health()
    status_code = 200 if health["status"] == "healthy" else 503
    return ORJSONResponse(content=health, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8000, reload=settings.debug)
