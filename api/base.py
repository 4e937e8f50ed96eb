"""Unified API response format and error handling."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from api.middleware import current_request_id
from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Request identifier, same as the X-Request-ID header")


class APIResponse(BaseModel):
    """
    Unified response format for the lead and catalog endpoints.

    The bulk-link and convert endpoints return bare payloads instead; errors
    from every endpoint use this shape.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    # Outside RequestIDMiddleware (auth rejections, unhandled errors) mint a fresh id
    return APIMeta(timestamp=now_utc(), request_id=current_request_id() or str(uuid4()))


def success_response(data: Any) -> APIResponse:
    return APIResponse(success=True, data=data, error=None, meta=_meta())


def error_response(code: str, message: str) -> APIResponse:
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message),
        meta=_meta(),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    FORBIDDEN = "FORBIDDEN"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_STATE = "INVALID_STATE"

    # External catalog
    STRIPE_ERROR = "STRIPE_ERROR"

    # Infrastructure
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
