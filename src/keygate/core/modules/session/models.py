"""Admin session models."""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field

AuthToken = NewType("AuthToken", str)


class SessionConfig(BaseModel):
    """Operator identity and session lifetime for the session store."""

    username: str = "admin"
    password: str = "admin123"
    password_hash: str | None = None  # bcrypt hash; when set, password is ignored
    ttl: timedelta = timedelta(hours=24)


class SessionFailure(StrEnum):
    """Why a token did not resolve to a live session."""

    UNAUTHENTICATED = "unauthenticated"
    EXPIRED = "expired"


class AdminSession(BaseModel):
    """Operator session. Audit attributes are fixed at login."""

    model_config = ConfigDict(frozen=True)

    token: AuthToken
    created_at: datetime
    ip: str
    user_agent: str | None = None


class AdminSessionView(BaseModel):
    """Admin session information (API representation)."""

    id: str = Field(..., description="Session token")
    created_at: datetime = Field(..., description="Login time")
    ip: str = Field(..., description="Origin IP recorded at login")
    user_agent: str | None = Field(None, description="User agent recorded at login")

    @classmethod
    def from_domain(cls, session: AdminSession) -> "AdminSessionView":
        """Create view model from domain model."""
        return cls(id=session.token, created_at=session.created_at, ip=session.ip, user_agent=session.user_agent)
