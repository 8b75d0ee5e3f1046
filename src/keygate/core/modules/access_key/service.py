import math
from datetime import datetime, timedelta
from uuid import UUID, uuid4

import structlog

from keygate.core.core import Service
from keygate.core.modules.access_key.models import AccessKey, KeyOutcome, KeyStats, KeyStatus, KeyValidation, RemainingTime
from keygate.core.modules.access_key.repository import KeyRepository
from keygate.errors import ValidationError
from keygate.utils import Clock, now

logger = structlog.get_logger(__name__)

MIN_KEY_HOURS = 1


def _parse_key_id(key_id: str) -> UUID | None:
    """Parse an exact key id. Anything that is not a UUID cannot match a stored key."""
    try:
        parsed = UUID(key_id)
    except ValueError:
        return None
    # Only the canonical hyphenated form names a key
    return parsed if str(parsed) == key_id.lower() else None


def _truncate_to_millis(value: datetime) -> datetime:
    # BSON datetimes carry milliseconds only
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class AccessKeyService(Service):
    """Issues, validates and revokes access keys.

    Expiry is evaluated lazily against the clock on every read and is never written back.
    """

    def __init__(self, repository: KeyRepository, clock: Clock = now, max_key_hours: int = 720) -> None:
        super().__init__()
        self._repository = repository
        self._clock = clock
        self.max_key_hours = max_key_hours

    async def create(self, owner_id: str, ttl_hours: float, ip: str | None = None) -> AccessKey:
        """Issue a new active key for owner_id valid for ttl_hours."""
        self._validate_ttl(ttl_hours)
        created_at = _truncate_to_millis(self._clock())
        key = AccessKey(
            id=uuid4(),
            owner_id=owner_id,
            status=KeyStatus.ACTIVE,
            created_at=created_at,
            expires_at=_truncate_to_millis(created_at + timedelta(hours=ttl_hours)),
            ip=ip,
        )
        await self._repository.insert(key)
        logger.debug("access_key_created", key_id=str(key.id), owner_id=owner_id, ttl_hours=ttl_hours)
        return key

    async def validate(self, key_id: str) -> KeyValidation:
        """Check a key. Revocation takes precedence over expiry."""
        key = await self.get_key(key_id)
        if key is None:
            outcome = KeyOutcome.NOT_FOUND
        elif key.status == KeyStatus.REVOKED:
            outcome = KeyOutcome.REVOKED
        elif key.expires_at <= self._clock():
            outcome = KeyOutcome.EXPIRED
        else:
            outcome = KeyOutcome.VALID
        return KeyValidation(key_id=key_id, outcome=outcome)

    async def get_key(self, key_id: str) -> AccessKey | None:
        parsed = _parse_key_id(key_id)
        if parsed is None:
            return None
        return await self._repository.fetch(parsed)

    async def list_by_owner(self, owner_id: str) -> list[AccessKey]:
        """All keys of an owner in creation order."""
        return await self._repository.list_by_owner(owner_id)

    async def delete(self, key_id: str) -> bool:
        """Permanently remove a key. Returns False if it does not exist."""
        parsed = _parse_key_id(key_id)
        if parsed is None:
            return False
        deleted = await self._repository.remove(parsed)
        if deleted:
            logger.debug("access_key_deleted", key_id=key_id)
        return deleted

    async def revoke(self, key_id: str) -> AccessKey | None:
        """Mark a key revoked. There is no way back to active."""
        parsed = _parse_key_id(key_id)
        if parsed is None:
            return None
        key = await self._repository.update(parsed, {"status": KeyStatus.REVOKED})
        if key is not None:
            logger.info("access_key_revoked", key_id=key_id, owner_id=key.owner_id)
        return key

    async def stats(self) -> KeyStats:
        total = await self._repository.count()
        revoked = await self._repository.count(status=KeyStatus.REVOKED)
        expired = await self._repository.count(status=KeyStatus.ACTIVE, expired_by=self._clock())
        return KeyStats(total=total, active=max(total - revoked - expired, 0), expired=expired, revoked=revoked)

    def remaining_time(self, key: AccessKey) -> RemainingTime:
        seconds = int((key.expires_at - self._clock()).total_seconds())
        if seconds <= 0:
            return RemainingTime(expired=True, remaining_seconds=0, hours=0, minutes=0, formatted="Expired")
        hours, rest = divmod(seconds, 3600)
        minutes = rest // 60
        return RemainingTime(
            expired=False, remaining_seconds=seconds, hours=hours, minutes=minutes, formatted=f"{hours}h {minutes}m"
        )

    def _validate_ttl(self, ttl_hours: float) -> None:
        if isinstance(ttl_hours, bool) or not isinstance(ttl_hours, (int, float)) or math.isnan(ttl_hours):
            raise ValidationError("ttl_hours must be a number")
        if ttl_hours <= 0:
            raise ValidationError("ttl_hours must be a positive number")
        if ttl_hours < MIN_KEY_HOURS:
            raise ValidationError(f"ttl_hours must be at least {MIN_KEY_HOURS}")
        if ttl_hours > self.max_key_hours:
            raise ValidationError(f"ttl_hours must not exceed {self.max_key_hours}")
