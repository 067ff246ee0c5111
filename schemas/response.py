"""MIC Service — Response Envelope.

Every body the API returns has the same outer shape::

    {"data": ..., "meta": {...}, "error": null}

Errors keep ``data`` null and fill ``error`` with the message, plus a
machine-readable ``code`` (the domain exception's class name) and optional
``details``. Listings carry page numbers and totals in ``meta``.

Usage:
    return APIResponse.success(AlertRead.model_validate(alert))
    return APIResponse.paginated(items, page=2, page_size=10, total_count=15)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from logger import request_id_var

T = TypeVar("T")

API_VERSION = "1.0.0"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ResponseMeta(BaseModel):
    """Envelope metadata.

    ``count`` is set for any list payload; the page fields only for
    paginated listings, where ``total_pages`` is ceil(total_count / page_size).
    """

    model_config = ConfigDict(extra="allow")

    timestamp: datetime = Field(default_factory=_now)
    request_id: str | None = Field(default_factory=request_id_var.get)
    version: str = API_VERSION

    count: int | None = None
    page: int | None = Field(None, ge=1)
    page_size: int | None = Field(None, ge=1)
    total_pages: int | None = Field(None, ge=0)
    total_count: int | None = Field(None, ge=0)


class APIResponse(BaseModel, Generic[T]):
    """Success envelope, generic over the payload type."""

    data: T | None = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
    error: str | None = None

    @classmethod
    def success(cls, data: T, **extra_meta: Any) -> "APIResponse[T]":
        meta = ResponseMeta(**extra_meta)
        if isinstance(data, list):
            meta.count = len(data)
        return cls(data=data, meta=meta)

    @classmethod
    def paginated(
        cls,
        data: list[Any],
        page: int,
        page_size: int,
        total_count: int,
    ) -> "APIResponse[Any]":
        pages = -(-total_count // page_size) if page_size > 0 else 0
        return cls(
            data=data,
            meta=ResponseMeta(
                count=len(data),
                page=page,
                page_size=page_size,
                total_pages=pages,
                total_count=total_count,
            ),
        )


class ErrorResponse(BaseModel):
    """Error envelope for 4xx/5xx responses.

    Example:
        {
            "data": null,
            "meta": {"timestamp": "2024-12-24T20:00:00Z", "request_id": "..."},
            "error": "Alert not found",
            "code": "ResourceNotFound",
            "details": {"resource_type": "Alert", "resource_id": "..."}
        }
    """

    data: None = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
    error: str
    code: str
    details: Any = None


# =============================================================================
# orjson rendering
# =============================================================================

# SQLite hands back naive datetimes; they are UTC by construction.
_ORJSON_OPTIONS = orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS


class ORJSONResponse(JSONResponse):
    """JSONResponse rendered with orjson. Accepts pydantic models directly."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")
        return orjson.dumps(content, option=_ORJSON_OPTIONS)
