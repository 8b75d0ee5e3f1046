from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, APIKeyHeader

from keygate.app import App
from keygate.core.modules.session.models import AuthToken

SESSION_COOKIE = "admin_session"
SESSION_HEADER = "X-Admin-Session"

# Security schemes
cookie_scheme = APIKeyCookie(
    name=SESSION_COOKIE,
    scheme_name="AdminSessionCookie",
    description="Admin session token stored in an HttpOnly cookie (preferred)",
    auto_error=False,
)
header_scheme = APIKeyHeader(
    name=SESSION_HEADER,
    scheme_name="AdminSessionHeader",
    description="Admin session token passed as a header",
    auto_error=False,
)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_client_ip(request: Request, app: Annotated[App, Depends(get_app)]) -> str:
    """Best-effort client address for audit records."""
    peer = request.client.host if request.client else None
    return app.resolve_ip(request.headers, peer)


async def get_session_token(
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
    token_header: Annotated[str | None, Depends(header_scheme)] = None,
) -> str | None:
    """Session token from the cookie, falling back to the X-Admin-Session header."""
    return token_cookie or token_header


async def get_admin_token(
    app: Annotated[App, Depends(get_app)],
    token: Annotated[str | None, Depends(get_session_token)],
) -> AuthToken:
    """Require a live admin session and return its token."""
    session = await app.require_admin(token)
    return session.token


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ClientIpDep = Annotated[str, Depends(get_client_ip)]
SessionTokenDep = Annotated[str | None, Depends(get_session_token)]
AdminTokenDep = Annotated[AuthToken, Depends(get_admin_token)]
