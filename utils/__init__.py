"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, days_from_today, to_utc, parse_iso
from utils.user_context import (
    get_current_user_id,
    get_current_role,
    is_admin,
    set_current_user,
    clear_current_user,
    user_context,
)
