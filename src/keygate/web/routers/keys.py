from fastapi import APIRouter, Response
from pydantic import BaseModel, Field, StrictFloat, StrictInt

from keygate.core.modules.access_key.models import AccessKeyView, KeyOutcome
from keygate.web.deps import AppDep, ClientIpDep
from keygate.web.openapi import ErrorResponse

router = APIRouter(prefix="/keys", tags=["keys"])


class CreateKeyRequest(BaseModel):
    """Request to issue a new access key."""

    owner_id: str = Field(..., description="Identifier the key is grouped under")
    ttl_hours: StrictInt | StrictFloat = Field(24, description="Key lifetime in hours")


class ValidateKeyResponse(BaseModel):
    """Validation outcome for a key."""

    key_id: str = Field(..., description="Key ID as requested")
    outcome: KeyOutcome = Field(..., description="valid, expired, revoked or not_found")
    valid: bool = Field(..., description="True only for the valid outcome")


class OwnerKeysResponse(BaseModel):
    """All keys of an owner."""

    owner_id: str
    keys: list[AccessKeyView]
    count: int


@router.post(
    "/create",
    summary="Create access key",
    description="Issue a new access key for an owner, valid for the requested number of hours.",
    operation_id="createKey",
    status_code=201,
    responses={
        201: {"description": "Key created"},
        400: {"model": ErrorResponse, "description": "Invalid owner or TTL"},
    },
)
async def create_key(create_data: CreateKeyRequest, app: AppDep, client_ip: ClientIpDep) -> AccessKeyView:
    return await app.create_key(create_data.owner_id, create_data.ttl_hours, ip=client_ip)


@router.get(
    "/validate/{key_id}",
    summary="Validate access key",
    description="Check whether a key is currently valid. Revocation is reported ahead of expiry.",
    operation_id="validateKey",
    responses={
        200: {"description": "Key is known; see outcome"},
        400: {"model": ErrorResponse, "description": "Malformed key ID"},
        404: {"model": ValidateKeyResponse, "description": "Key not found"},
    },
)
async def validate_key(key_id: str, app: AppDep, response: Response) -> ValidateKeyResponse:
    validation = await app.validate_key(key_id)
    if validation.outcome == KeyOutcome.NOT_FOUND:
        response.status_code = 404
    return ValidateKeyResponse(key_id=validation.key_id, outcome=validation.outcome, valid=validation.is_valid)


@router.get(
    "/info/{key_id}",
    summary="Get key information",
    description="Get key details including the remaining lifetime.",
    operation_id="getKeyInfo",
    responses={
        200: {"description": "Key details"},
        400: {"model": ErrorResponse, "description": "Malformed key ID"},
        404: {"model": ErrorResponse, "description": "Key not found"},
    },
)
async def get_key_info(key_id: str, app: AppDep) -> AccessKeyView:
    return await app.get_key_info(key_id)


@router.get(
    "/user/{owner_id}",
    summary="List keys of an owner",
    description="Get all keys issued to an owner, oldest first.",
    operation_id="listOwnerKeys",
    responses={200: {"description": "Keys of the owner"}},
)
async def list_owner_keys(owner_id: str, app: AppDep) -> OwnerKeysResponse:
    keys = await app.get_user_keys(owner_id)
    return OwnerKeysResponse(owner_id=owner_id, keys=keys, count=len(keys))


@router.delete(
    "/{key_id}",
    summary="Delete access key",
    description="Permanently delete a key.",
    operation_id="deleteKey",
    status_code=204,
    responses={
        204: {"description": "Key deleted"},
        400: {"model": ErrorResponse, "description": "Malformed key ID"},
        404: {"model": ErrorResponse, "description": "Key not found"},
    },
)
async def delete_key(key_id: str, app: AppDep) -> None:
    await app.delete_key(key_id)
