"""Pydantic models for auth domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from utils.user_context import DEFAULT_ROLE


class Session(BaseModel):
    """An active user session."""

    token: str = Field(..., description="Session token (opaque string)")
    user_id: UUID
    role: str = Field(DEFAULT_ROLE, description="Role of the session's user, e.g. admin or sales")
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime

    def to_store(self) -> dict:
        """Serialized form kept in Valkey. The token is the key, not part of the value."""
        return {
            "user_id": str(self.user_id),
            "role": self.role,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "last_activity_at": self.last_activity_at.isoformat(),
        }
