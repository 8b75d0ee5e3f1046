import asyncio
import secrets
from collections.abc import Callable

import bcrypt
import structlog

from keygate.core.core import Service
from keygate.core.modules.session.models import AdminSession, AuthToken, SessionConfig, SessionFailure
from keygate.utils import Clock, now

logger = structlog.get_logger(__name__)


def generate_token() -> AuthToken:
    """256 bits from the OS CSPRNG, hex encoded."""
    return AuthToken(secrets.token_hex(32))


def _equal(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


class SessionService(Service):
    """In-memory operator sessions.

    Expired sessions are evicted only when require_auth touches them; there is no sweep.
    """

    def __init__(
        self,
        config: SessionConfig,
        clock: Clock = now,
        token_factory: Callable[[], AuthToken] = generate_token,
    ) -> None:
        super().__init__()
        self._config = config
        self._clock = clock
        self._token_factory = token_factory
        self._sessions: dict[AuthToken, AdminSession] = {}
        self._lock = asyncio.Lock()

    @property
    def ttl_seconds(self) -> int:
        return int(self._config.ttl.total_seconds())

    def verify_credentials(self, username: str, password: str) -> bool:
        """Check credentials against the configured operator identity."""
        username_ok = _equal(username, self._config.username)
        if self._config.password_hash is not None:
            password_ok = bcrypt.checkpw(password.encode("utf-8"), self._config.password_hash.encode("utf-8"))
        else:
            password_ok = _equal(password, self._config.password)
        return username_ok and password_ok

    async def authenticate(self, username: str, password: str, ip: str, user_agent: str | None) -> AuthToken | None:
        """Open a session for valid operator credentials, None otherwise."""
        if not self.verify_credentials(username, password):
            return None
        token = self._token_factory()
        session = AdminSession(token=token, created_at=self._clock(), ip=ip, user_agent=user_agent)
        async with self._lock:
            self._sessions[token] = session
        return token

    async def require_auth(self, token: str | None) -> AdminSession | SessionFailure:
        """Resolve a token to its live session, evicting it if it has expired."""
        if not token:
            return SessionFailure.UNAUTHENTICATED
        async with self._lock:
            session = self._sessions.get(AuthToken(token))
            if session is None:
                return SessionFailure.UNAUTHENTICATED
            if self._clock() - session.created_at > self._config.ttl:
                del self._sessions[session.token]
                logger.debug("admin_session_evicted", ip=session.ip)
                return SessionFailure.EXPIRED
            return session

    async def logout(self, token: str | None) -> bool:
        """Drop a session. Succeeds for unknown tokens; returns whether anything was removed."""
        if not token:
            return False
        async with self._lock:
            return self._sessions.pop(AuthToken(token), None) is not None

    async def list_sessions(self) -> list[AdminSession]:
        """Snapshot of stored sessions, including expired ones nobody has touched yet."""
        async with self._lock:
            return list(self._sessions.values())

    async def clear_all(self) -> int:
        async with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
            return count
