"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Session configuration.

    Sessions are issued by the login flow; this service only validates and
    extends them.
    """

    session_expiry_hours: int = Field(
        default=2160,  # 90 days
        description="Session lifetime in hours",
        ge=1,
        le=2160,
    )
    session_extend_on_activity: bool = Field(
        default=True,
        description="Whether to extend session expiry on activity",
    )
