from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from keygate.core.modules.access_key.models import AccessKeyView, KeyStats
from keygate.core.modules.session.models import AdminSessionView
from keygate.web.deps import SESSION_COOKIE, AdminTokenDep, AppDep, ClientIpDep, SessionTokenDep
from keygate.web.openapi import ErrorResponse

router = APIRouter(prefix="/admin", tags=["admin"])


class LoginRequest(BaseModel):
    """Operator authentication request."""

    username: str = Field("", description="Operator username")
    password: str = Field("", description="Operator password")


class LoginResponse(BaseModel):
    """Operator authentication response."""

    token: str = Field(..., description="Session token, also set as the admin_session cookie")


class SessionsResponse(BaseModel):
    """Stored admin sessions."""

    sessions: list[AdminSessionView]
    count: int


class ClearSessionsResponse(BaseModel):
    cleared: int = Field(..., description="Number of sessions removed")


class StatsResponse(BaseModel):
    """Key and session counts."""

    keys: KeyStats
    sessions: int = Field(..., description="Stored sessions, including expired ones not yet evicted")


@router.post(
    "/auth/login",
    summary="Operator login",
    description="Authenticate with the operator credentials to receive a session cookie.",
    operation_id="adminLogin",
    responses={
        200: {"description": "Successfully authenticated"},
        400: {"model": ErrorResponse, "description": "Missing username or password"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    login_data: LoginRequest, request: Request, response: Response, app: AppDep, client_ip: ClientIpDep
) -> LoginResponse:
    token = await app.login(login_data.username, login_data.password, client_ip, request.headers.get("user-agent"))

    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="strict",
        secure=app.config.production,
        max_age=app.session_ttl_seconds,
    )

    return LoginResponse(token=token)


@router.post(
    "/auth/logout",
    summary="Operator logout",
    description="End the current session. Succeeds even when there is no session.",
    operation_id="adminLogout",
    status_code=204,
    responses={204: {"description": "Logged out"}},
)
async def logout(app: AppDep, token: SessionTokenDep, response: Response) -> None:
    await app.logout(token)
    response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="strict", secure=app.config.production)


@router.get(
    "/api/session",
    summary="Current session",
    description="Get information about the session making this request.",
    operation_id="getAdminSession",
    responses={
        200: {"description": "Current session"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def get_session(app: AppDep, auth_token: AdminTokenDep) -> AdminSessionView:
    return await app.get_current_session(auth_token)


@router.get(
    "/api/sessions",
    summary="List sessions",
    description="List stored admin sessions. Expired sessions stay listed until their token is used again.",
    operation_id="listAdminSessions",
    responses={
        200: {"description": "Stored sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def list_sessions(app: AppDep, auth_token: AdminTokenDep) -> SessionsResponse:
    sessions = await app.get_sessions(auth_token)
    return SessionsResponse(sessions=sessions, count=len(sessions))


@router.delete(
    "/api/sessions",
    summary="Clear sessions",
    description="Remove every admin session, including the caller's.",
    operation_id="clearAdminSessions",
    responses={
        200: {"description": "Sessions cleared"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def clear_sessions(app: AppDep, auth_token: AdminTokenDep) -> ClearSessionsResponse:
    return ClearSessionsResponse(cleared=await app.clear_sessions(auth_token))


@router.post(
    "/api/keys/{key_id}/revoke",
    summary="Revoke access key",
    description="Permanently revoke a key. A revoked key never validates again.",
    operation_id="revokeKey",
    responses={
        200: {"description": "Key revoked"},
        400: {"model": ErrorResponse, "description": "Malformed key ID"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
        404: {"model": ErrorResponse, "description": "Key not found"},
    },
)
async def revoke_key(key_id: str, app: AppDep, auth_token: AdminTokenDep) -> AccessKeyView:
    return await app.revoke_key(auth_token, key_id)


@router.get(
    "/api/stats",
    summary="Usage statistics",
    description="Count keys by state and stored admin sessions.",
    operation_id="getAdminStats",
    responses={
        200: {"description": "Current counts"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def get_stats(app: AppDep, auth_token: AdminTokenDep) -> StatsResponse:
    keys = await app.get_key_stats(auth_token)
    sessions = await app.get_sessions(auth_token)
    return StatsResponse(keys=keys, sessions=len(sessions))
