"""Session validation and request authentication."""

from auth.exceptions import AuthError, SessionExpiredError
from auth.types import Session
from auth.config import AuthConfig
from auth.session import SessionManager
from auth.security_middleware import AuthMiddleware
