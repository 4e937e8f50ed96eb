"""Security middleware for FastAPI - session validation and user context."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from api.base import error_response, ErrorCodes
from utils.user_context import set_current_user, clear_current_user

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"


def extract_session_token(request: Request) -> str | None:
    """
    Session token from the browser cookie, or from a Bearer header.

    Integrations posting leads (web forms, relays) have no cookie jar and
    send the same session token as `Authorization: Bearer <token>`. The
    cookie wins when both are present.
    """
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token

    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _unauthorized(code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=error_response(code, message).model_dump(mode="json"),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates session and sets user context.

    For protected routes:
    1. Extracts the session token (cookie or Bearer header)
    2. Validates session via SessionManager
    3. Sets user id and role in request.state and user context (for RLS)
    4. Clears context after request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = (
        "/health",
        "/docs",
        "/openapi.json",
    )

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self._session_manager = session_manager

    def _is_public_path(self, path: str) -> bool:
        return any(
            path == public or path.startswith(public + "/")
            for public in self.PUBLIC_PATHS
        )

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if self._is_public_path(path):
            return await call_next(request)

        session_token = extract_session_token(request)
        if not session_token:
            logger.info(f"Rejected unauthenticated {request.method} {path}")
            return _unauthorized(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = self._session_manager.validate_session(session_token)
        except SessionExpiredError:
            logger.info(f"Rejected expired session on {request.method} {path}")
            return _unauthorized(ErrorCodes.SESSION_EXPIRED, "Session has expired")

        set_current_user(session.user_id, session.role)
        request.state.user_id = session.user_id
        request.state.role = session.role
        request.state.session = session

        try:
            return await call_next(request)
        finally:
            clear_current_user()
