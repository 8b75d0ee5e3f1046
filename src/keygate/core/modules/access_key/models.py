"""Access key models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from keygate.core.db import MongoModel


class KeyStatus(StrEnum):
    """Stored key status. Expiry is derived from expires_at and never stored."""

    ACTIVE = "active"
    REVOKED = "revoked"


class KeyOutcome(StrEnum):
    """Result of validating a key against the current time."""

    VALID = "valid"
    EXPIRED = "expired"
    REVOKED = "revoked"
    NOT_FOUND = "not_found"


class AccessKey(MongoModel):
    """Short-lived access credential.

    Indexed on owner_id and created_at.
    """

    owner_id: str
    status: KeyStatus = KeyStatus.ACTIVE
    created_at: datetime
    expires_at: datetime
    ip: str | None = None  # Resolved origin of the creating request, audit only


class KeyValidation(BaseModel):
    """Validation outcome for a key id."""

    key_id: str
    outcome: KeyOutcome

    @property
    def is_valid(self) -> bool:
        return self.outcome == KeyOutcome.VALID


class RemainingTime(BaseModel):
    """Time left until a key expires."""

    expired: bool = Field(..., description="Whether the key is past its expiry")
    remaining_seconds: int = Field(..., description="Seconds until expiry, 0 when expired", ge=0)
    hours: int = Field(..., ge=0)
    minutes: int = Field(..., ge=0)
    formatted: str = Field(..., description="Human readable remaining time, e.g. '5h 12m'")


class AccessKeyView(BaseModel):
    """Access key information (API representation)."""

    key_id: UUID = Field(..., description="Key ID")
    owner_id: str = Field(..., description="Owner the key was issued to")
    status: KeyStatus = Field(..., description="Stored status")
    valid: bool = Field(..., description="Whether the key currently validates")
    created_at: datetime
    expires_at: datetime
    remaining: RemainingTime

    @classmethod
    def from_domain(cls, key: AccessKey, remaining: RemainingTime) -> "AccessKeyView":
        """Create view model from domain model."""
        return cls(
            key_id=key.id,
            owner_id=key.owner_id,
            status=key.status,
            valid=key.status == KeyStatus.ACTIVE and not remaining.expired,
            created_at=key.created_at,
            expires_at=key.expires_at,
            remaining=remaining,
        )


class KeyStats(BaseModel):
    """Key counts by current state."""

    total: int = Field(..., ge=0)
    active: int = Field(..., description="Keys that currently validate", ge=0)
    expired: int = Field(..., description="Active keys past their expiry", ge=0)
    revoked: int = Field(..., ge=0)
