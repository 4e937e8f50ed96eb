"""Request-scoped middleware for API requests."""

import logging
import re
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Accept caller ids that are safe to echo into headers and logs
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def current_request_id() -> str | None:
    """Id of the request being handled, or None outside RequestIDMiddleware."""
    return _request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id for tracing.

    A well-formed X-Request-ID from the caller (e.g. a webhook relay) is kept
    so its logs line up with ours; otherwise a new UUID is generated. The id
    is also exposed through `current_request_id()` so response envelopes
    carry the same value as the header.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER)
        if incoming and _VALID_REQUEST_ID.match(incoming):
            request_id = incoming
        else:
            request_id = str(uuid4())

        request.state.request_id = request_id
        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.debug(f"{request.method} {request.url.path} -> {response.status_code} [{request_id}]")
        return response
