from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager

import structlog

from keygate.config import Config
from keygate.core.core import Core
from keygate.core.modules.access_key.models import AccessKeyView, KeyStats, KeyValidation
from keygate.core.modules.origin.models import IpReport
from keygate.core.modules.origin.resolver import fold_headers, resolve_client_ip, resolve_ip_variants
from keygate.core.modules.session.models import AdminSession, AdminSessionView, AuthToken, SessionFailure
from keygate.errors import AuthenticationError, NotFoundError, ValidationError
from keygate.utils import Clock, is_uuid, now, sanitize_input

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, checks input and sessions before delegating to Core."""

    def __init__(self, config: Config, clock: Clock = now) -> None:
        self._core = Core(config, clock=clock)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Client origin ===
    def resolve_ip(self, headers: Mapping[str, str], peer: str | None) -> str:
        """Resolve the client address using the configured preference."""
        return resolve_client_ip(headers, peer, prefer_private=self.config.ip_preference == "private")

    def get_ip_report(self, headers: Mapping[str, str], peer: str | None) -> IpReport:
        """Resolved address, both variants and the raw proxy headers."""
        lowered = fold_headers(headers)
        return IpReport(
            ip=self.resolve_ip(headers, peer),
            variants=resolve_ip_variants(headers, peer),
            peer=peer,
            forwarded=lowered.get("forwarded"),
            x_forwarded_for=lowered.get("x-forwarded-for"),
            x_real_ip=lowered.get("x-real-ip"),
            cf_connecting_ip=lowered.get("cf-connecting-ip"),
        )

    # === Access keys ===
    async def create_key(self, owner_id: str, ttl_hours: float, ip: str | None = None) -> AccessKeyView:
        """Issue a key for an owner."""
        owner_id = sanitize_input(owner_id)
        if not owner_id:
            raise ValidationError("owner_id is required")
        service = self._core.services.access_key
        key = await service.create(owner_id, ttl_hours, ip=ip)
        logger.info("access_key_issued", key_id=str(key.id), owner_id=owner_id, ip=ip)
        return AccessKeyView.from_domain(key, service.remaining_time(key))

    async def validate_key(self, key_id: str) -> KeyValidation:
        """Validate a key. Not-found is reported as an outcome, not an error."""
        self._ensure_key_id(key_id)
        return await self._core.services.access_key.validate(key_id)

    async def get_key_info(self, key_id: str) -> AccessKeyView:
        """Get key details with remaining time."""
        self._ensure_key_id(key_id)
        service = self._core.services.access_key
        key = await service.get_key(key_id)
        if key is None:
            raise NotFoundError(f"Key '{key_id}' not found")
        return AccessKeyView.from_domain(key, service.remaining_time(key))

    async def get_user_keys(self, owner_id: str) -> list[AccessKeyView]:
        """List an owner's keys in creation order."""
        service = self._core.services.access_key
        keys = await service.list_by_owner(sanitize_input(owner_id))
        return [AccessKeyView.from_domain(key, service.remaining_time(key)) for key in keys]

    async def delete_key(self, key_id: str) -> None:
        self._ensure_key_id(key_id)
        if not await self._core.services.access_key.delete(key_id):
            raise NotFoundError(f"Key '{key_id}' not found")

    async def revoke_key(self, auth_token: AuthToken, key_id: str) -> AccessKeyView:
        """Revoke a key (admin only)."""
        session = await self.require_admin(auth_token)
        self._ensure_key_id(key_id)
        service = self._core.services.access_key
        key = await service.revoke(key_id)
        if key is None:
            raise NotFoundError(f"Key '{key_id}' not found")
        logger.info("access_key_revoked_by_admin", key_id=key_id, admin_ip=session.ip)
        return AccessKeyView.from_domain(key, service.remaining_time(key))

    async def get_key_stats(self, auth_token: AuthToken) -> KeyStats:
        """Key counts by state (admin only)."""
        await self.require_admin(auth_token)
        return await self._core.services.access_key.stats()

    # === Admin sessions ===
    async def login(self, username: str, password: str, ip: str, user_agent: str | None) -> AuthToken:
        """Authenticate the operator and open a session."""
        if not username or not password:
            raise ValidationError("Username and password are required")
        token = await self._core.services.session.authenticate(username, password, ip, user_agent)
        if token is None:
            logger.warning("admin_login_failed", ip=ip, username=username)
            raise AuthenticationError("Invalid credentials")
        logger.info("admin_login_succeeded", ip=ip)
        return token

    async def logout(self, auth_token: str | None) -> None:
        """Close a session. Unknown or missing tokens are not an error."""
        if await self._core.services.session.logout(auth_token):
            logger.info("admin_logout")

    async def require_admin(self, auth_token: str | None) -> AdminSession:
        """Resolve a token to a live session or raise AuthenticationError."""
        result = await self._core.services.session.require_auth(auth_token)
        if isinstance(result, SessionFailure):
            if result == SessionFailure.EXPIRED:
                raise AuthenticationError("Session expired")
            raise AuthenticationError("Invalid or expired session" if auth_token else "Authentication required")
        return result

    async def get_current_session(self, auth_token: AuthToken) -> AdminSessionView:
        return AdminSessionView.from_domain(await self.require_admin(auth_token))

    async def get_sessions(self, auth_token: AuthToken) -> list[AdminSessionView]:
        """List stored sessions (admin only). May include expired sessions not yet evicted."""
        await self.require_admin(auth_token)
        sessions = await self._core.services.session.list_sessions()
        return [AdminSessionView.from_domain(session) for session in sessions]

    async def clear_sessions(self, auth_token: AuthToken) -> int:
        """Drop every session, the caller's included (admin only)."""
        session = await self.require_admin(auth_token)
        count = await self._core.services.session.clear_all()
        logger.info("admin_sessions_cleared", count=count, admin_ip=session.ip)
        return count

    @property
    def session_ttl_seconds(self) -> int:
        return self._core.services.session.ttl_seconds

    # === Private helpers ===
    @staticmethod
    def _ensure_key_id(key_id: str) -> None:
        if not is_uuid(key_id):
            raise ValidationError("Invalid key ID format")
