"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.stripe_client import StripeError
from core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError):
        return _error(400, ErrorCodes.INVALID_STATE, str(exc))

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return _error(400, ErrorCodes.VALIDATION_ERROR, str(exc))

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(request: Request, exc: ForbiddenError):
        return _error(403, ErrorCodes.FORBIDDEN, str(exc) or "Admin access required")

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error(f"Persistence failure on {request.url.path}: {exc}")
        return _error(500, ErrorCodes.PERSISTENCE_FAILURE, str(exc))

    @app.exception_handler(StripeError)
    async def stripe_error_handler(request: Request, exc: StripeError):
        logger.error(f"Stripe failure on {request.url.path}: {exc}")
        return _error(502, ErrorCodes.STRIPE_ERROR, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _error(404, ErrorCodes.NOT_FOUND, message)
        return _error(400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
