from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

API_TITLE = "Keygate API"
API_VERSION = "2.0.0"

# Reachable without an admin session; logout reads the session but never requires it
PUBLIC_PATH_PREFIXES = ("/api/keys", "/admin/auth", "/health", "/ip")


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=API_TITLE,
            version=API_VERSION,
            summary="Short-lived access keys with an operator admin surface",
            routes=app.routes,
        )

        # Session schemes come from the dependencies in keygate.web.deps
        for path, path_item in openapi_schema["paths"].items():
            if path == "/" or path.startswith(PUBLIC_PATH_PREFIXES):
                for operation in path_item.values():
                    # Mark as public endpoint (no security required)
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid credentials", "type": "authentication_error"},
                {"message": "Key not found", "type": "not_found"},
                {"message": "ttl_hours must be a positive number", "type": "validation_error"},
            ]
        }
    }
