"""Persistence backends for access keys."""

import asyncio
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from keygate.core.modules.access_key.models import AccessKey, KeyStatus
from keygate.errors import StorageError

logger = structlog.get_logger(__name__)


class KeyRepository(Protocol):
    """Record store behind AccessKeyService."""

    async def on_start(self) -> None: ...

    async def insert(self, key: AccessKey) -> None: ...

    async def fetch(self, key_id: UUID) -> AccessKey | None: ...

    async def update(self, key_id: UUID, patch: dict[str, Any]) -> AccessKey | None: ...

    async def remove(self, key_id: UUID) -> bool: ...

    async def list_by_owner(self, owner_id: str) -> list[AccessKey]: ...

    async def count(self, status: KeyStatus | None = None, expired_by: datetime | None = None) -> int: ...


class MemoryKeyRepository:
    """Process-local key storage. Dict order doubles as creation order."""

    def __init__(self) -> None:
        self._keys: dict[UUID, AccessKey] = {}
        self._lock = asyncio.Lock()

    async def on_start(self) -> None:
        """Nothing to prepare."""

    async def insert(self, key: AccessKey) -> None:
        async with self._lock:
            if key.id in self._keys:
                raise StorageError(f"Duplicate key id '{key.id}'")
            self._keys[key.id] = key.model_copy()

    async def fetch(self, key_id: UUID) -> AccessKey | None:
        async with self._lock:
            key = self._keys.get(key_id)
            return key.model_copy() if key is not None else None

    async def update(self, key_id: UUID, patch: dict[str, Any]) -> AccessKey | None:
        async with self._lock:
            key = self._keys.get(key_id)
            if key is None:
                return None
            updated = key.model_copy(update=patch)
            self._keys[key_id] = updated
            return updated.model_copy()

    async def remove(self, key_id: UUID) -> bool:
        async with self._lock:
            return self._keys.pop(key_id, None) is not None

    async def list_by_owner(self, owner_id: str) -> list[AccessKey]:
        async with self._lock:
            return [key.model_copy() for key in self._keys.values() if key.owner_id == owner_id]

    async def count(self, status: KeyStatus | None = None, expired_by: datetime | None = None) -> int:
        async with self._lock:
            return sum(
                1
                for key in self._keys.values()
                if (status is None or key.status == status) and (expired_by is None or key.expires_at <= expired_by)
            )


class MongoKeyRepository:
    """Key storage in the ``access_keys`` collection.

    Driver failures surface as StorageError with the driver exception chained.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("access_keys")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        try:
            await self._collection.create_index([("owner_id", 1), ("created_at", 1)])
        except PyMongoError as e:
            raise StorageError("Failed to create access key indexes") from e

    async def insert(self, key: AccessKey) -> None:
        try:
            await self._collection.insert_one(key.to_mongo())
        except PyMongoError as e:
            logger.error("access_key_insert_failed", key_id=str(key.id), error=str(e))
            raise StorageError("Failed to store access key") from e

    async def fetch(self, key_id: UUID) -> AccessKey | None:
        try:
            doc = await self._collection.find_one({"_id": key_id})
        except PyMongoError as e:
            raise StorageError("Failed to fetch access key") from e
        return AccessKey.model_validate(doc) if doc is not None else None

    async def update(self, key_id: UUID, patch: dict[str, Any]) -> AccessKey | None:
        try:
            doc = await self._collection.find_one_and_update(
                {"_id": key_id},
                {"$set": patch},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StorageError("Failed to update access key") from e
        return AccessKey.model_validate(doc) if doc is not None else None

    async def remove(self, key_id: UUID) -> bool:
        try:
            result = await self._collection.delete_one({"_id": key_id})
        except PyMongoError as e:
            raise StorageError("Failed to delete access key") from e
        return result.deleted_count > 0

    async def list_by_owner(self, owner_id: str) -> list[AccessKey]:
        try:
            return await AccessKey.list_cursor(self._collection.find({"owner_id": owner_id}).sort("created_at", 1))
        except PyMongoError as e:
            raise StorageError("Failed to list access keys") from e

    async def count(self, status: KeyStatus | None = None, expired_by: datetime | None = None) -> int:
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status
        if expired_by is not None:
            query["expires_at"] = {"$lte": expired_by}
        try:
            return await self._collection.count_documents(query)
        except PyMongoError as e:
            raise StorageError("Failed to count access keys") from e
