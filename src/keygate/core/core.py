from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient

from keygate.config import Config
from keygate.utils import Clock, now

if TYPE_CHECKING:
    from keygate.core.modules.access_key.repository import KeyRepository
    from keygate.core.modules.access_key.service import AccessKeyService
    from keygate.core.modules.session.service import SessionService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with lifecycle hooks."""

    def __init__(self) -> None:
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry. The key and session stores are independent of each other."""

    access_key: AccessKeyService
    session: SessionService

    def __init__(self, config: Config, repository: KeyRepository, clock: Clock) -> None:
        from keygate.core.modules.access_key.service import AccessKeyService  # noqa: PLC0415
        from keygate.core.modules.session.service import SessionService  # noqa: PLC0415

        self.access_key = AccessKeyService(repository, clock=clock, max_key_hours=config.max_key_hours)
        self.session = SessionService(config.session_config(), clock=clock)
        self._services: list[Service] = [self.access_key, self.session]

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, key storage, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    repository: KeyRepository
    services: Services

    def __init__(self, config: Config, clock: Clock = now) -> None:
        """Initialize core with config, key storage backend, and services."""
        from keygate.core.modules.access_key.repository import MemoryKeyRepository, MongoKeyRepository  # noqa: PLC0415

        self.config = config
        self.mongo_client = None
        if config.database_url:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
            self.repository = MongoKeyRepository(database)
        else:
            self.repository = MemoryKeyRepository()
        self.services = Services(config, self.repository, clock)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Prepare storage and start all services."""
        await self.repository.on_start()
        await self.services.start_all()
        logger.info("core_started", storage=type(self.repository).__name__)

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
