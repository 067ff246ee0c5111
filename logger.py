"""MIC Service — Structured Logging.

structlog on top of the stdlib ``logging`` module: JSON lines outside
development, a colored console renderer locally.

Every entry passes through a redaction step before rendering. Keys that
look like credentials are replaced wholesale, and email addresses inside
string values are masked, so a stray ``logger.info("...", payload=body)``
cannot leak a password or a user's address.

Usage:
    from logger import configure_logging, get_logger

    configure_logging(environment="production", log_level="INFO")

    logger = get_logger(__name__)
    logger.info("Alert created", alert_id="abc-123", priority="critical")
"""

from __future__ import annotations

import logging
import re
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from structlog.types import EventDict, Processor, WrappedLogger

# =============================================================================
# Request-scoped context
# =============================================================================

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_CONTEXT_FIELDS: tuple[tuple[str, ContextVar[str | None]], ...] = (
    ("request_id", request_id_var),
    ("correlation_id", correlation_id_var),
    ("user_id", user_id_var),
)

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio", "aiosqlite", "sqlalchemy.engine")


def inject_request_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    for key, var in _CONTEXT_FIELDS:
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)
    event_dict.setdefault("app", "mic-service")
    return event_dict


# =============================================================================
# Redaction
# =============================================================================

class Redactor:
    """structlog processor that scrubs credentials and email addresses.

    Args:
        secret_keys: Substrings that mark a key as secret (case-insensitive).
        mask: Replacement for secret values.
    """

    _EMAIL = re.compile(r"[\w.%+-]+@[\w-]+(?:\.[\w-]+)+")

    def __init__(
        self,
        secret_keys: tuple[str, ...] = ("password", "secret", "token", "authorization", "cookie", "jwt"),
        mask: str = "[REDACTED]",
    ) -> None:
        self._secret = re.compile("|".join(re.escape(k) for k in secret_keys), re.IGNORECASE)
        self._mask = mask

    def _scrub(self, value: Any, key: str | None = None) -> Any:
        if key and self._secret.search(key):
            return self._mask
        if isinstance(value, str):
            return self._EMAIL.sub("[EMAIL_REDACTED]", value)
        if isinstance(value, dict):
            return {k: self._scrub(v, str(k)) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._scrub(item, key) for item in value]
        return value

    def __call__(
        self,
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        for key in list(event_dict):
            if key != "event":
                event_dict[key] = self._scrub(event_dict[key], key)
        return event_dict


# =============================================================================
# Setup
# =============================================================================

def _renderer(use_json: bool) -> list[Processor]:
    if use_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    json_format: bool | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        environment: development, staging or production.
        log_level: Root level name.
        json_format: Force JSON (True) or console (False) output. Defaults
            to JSON everywhere except development.
    """
    use_json = environment != "development" if json_format is None else json_format

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            inject_request_context,
            Redactor(),
            *_renderer(use_json),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(log_level.upper()),
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


# =============================================================================
# HTTP middleware
# =============================================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with ids and log its outcome.

    Honors incoming ``X-Request-ID`` / ``X-Correlation-ID`` headers, generates
    a request id otherwise, and echoes both on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        correlation_id = request.headers.get("X-Correlation-ID") or request_id
        tokens = [
            request_id_var.set(request_id),
            correlation_id_var.set(correlation_id),
            user_id_var.set(None),
        ]

        log = get_logger("mic.http").bind(method=request.method, path=request.url.path)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("request_failed", duration_ms=_elapsed_ms(started))
            raise
        else:
            log.info("request_completed", status_code=response.status_code, duration_ms=_elapsed_ms(started))
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            for var, token in zip((request_id_var, correlation_id_var, user_id_var), tokens):
                var.reset(token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
