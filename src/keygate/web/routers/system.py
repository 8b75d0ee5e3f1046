"""Service index, health and client address diagnostics."""

from typing import Any

from fastapi import APIRouter, Request

from keygate.core.modules.origin.models import IpReport
from keygate.utils import now
from keygate.web.deps import AppDep
from keygate.web.openapi import API_TITLE, API_VERSION

router = APIRouter(tags=["system"])

ENDPOINTS = {
    "POST /api/keys/create": "Create new access key",
    "GET /api/keys/validate/{key_id}": "Validate a key",
    "GET /api/keys/info/{key_id}": "Get key information",
    "GET /api/keys/user/{owner_id}": "Get all keys for an owner",
    "DELETE /api/keys/{key_id}": "Delete a key",
    "POST /admin/auth/login": "Operator login",
    "POST /admin/auth/logout": "Operator logout",
    "GET /ip": "Show detected client IP (debug)",
    "GET /health": "Health check",
}


@router.get("/", summary="API index", operation_id="getApiInfo")
async def get_api_info() -> dict[str, Any]:
    return {"name": API_TITLE, "version": API_VERSION, "endpoints": ENDPOINTS}


@router.get("/health", summary="Health check", operation_id="healthCheck")
async def health_check(app: AppDep) -> dict[str, str]:
    return {
        "status": "healthy",
        "version": API_VERSION,
        "environment": "production" if app.config.production else "development",
        "timestamp": now().isoformat(),
    }


@router.get(
    "/ip",
    summary="Detected client IP",
    description="Show the resolved client address, both resolution variants and the raw proxy headers.",
    operation_id="getClientIp",
)
async def get_client_ip(request: Request, app: AppDep) -> IpReport:
    peer = request.client.host if request.client else None
    return app.get_ip_report(request.headers, peer)
