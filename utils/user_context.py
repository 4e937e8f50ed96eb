"""Propagate the acting user's identity and role through the call stack using contextvars."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)
_current_user_role: ContextVar[str | None] = ContextVar("current_user_role", default=None)

DEFAULT_ROLE = "sales"
ADMIN_ROLE = "admin"


def get_current_user_id() -> UUID:
    """
    Get current user ID from context.

    Raises RuntimeError if no user context is set.
    Lead, deal and catalog operations always act on behalf of someone;
    reaching them without a user is a wiring bug.
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise RuntimeError(
            "No user context set. This usually means you're calling "
            "user-scoped code outside of an authenticated request."
        )
    return user_id


def get_current_role() -> str:
    """Role of the acting user. Falls back to the least-privileged role."""
    return _current_user_role.get() or DEFAULT_ROLE


def is_admin() -> bool:
    return get_current_role() == ADMIN_ROLE


def set_current_user(user_id: UUID, role: str | None = None) -> None:
    """
    Set current user ID and role in context.

    Called by auth middleware after validating session.
    """
    _current_user_id.set(user_id)
    _current_user_role.set(role)


def clear_current_user() -> None:
    """
    Clear user context.

    Must be called in a finally block to prevent context leakage between requests.
    """
    _current_user_id.set(None)
    _current_user_role.set(None)


@contextmanager
def user_context(user_id: UUID, role: str | None = None):
    """
    Temporarily act as a user.

    Used by tests and by admin operations performed on behalf of a user.

    Example:
        with user_context(admin_id, role="admin"):
            report = reconciliation_service.suggest()
    """
    previous_id = _current_user_id.get()
    previous_role = _current_user_role.get()
    set_current_user(user_id, role)
    try:
        yield
    finally:
        if previous_id is None:
            clear_current_user()
        else:
            set_current_user(previous_id, previous_role)
