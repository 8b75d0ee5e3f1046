"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from keygate.app import App
from keygate.config import Config
from keygate.core.modules.access_key.repository import MemoryKeyRepository
from keygate.core.modules.access_key.service import AccessKeyService
from keygate.core.modules.session.models import SessionConfig
from keygate.core.modules.session.service import SessionService
from keygate.web.server import create_fastapi_app

ADMIN_USERNAME = "operator"
ADMIN_PASSWORD = "s3cret-pass"


class FakeClock:
    """Controllable clock: returns a fixed instant until advanced."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def key_repository():
    return MemoryKeyRepository()


@pytest.fixture
def key_service(key_repository, clock):
    return AccessKeyService(key_repository, clock=clock, max_key_hours=720)


@pytest.fixture
def session_config():
    return SessionConfig(username=ADMIN_USERNAME, password=ADMIN_PASSWORD, ttl=timedelta(hours=24))


@pytest.fixture
def session_service(session_config, clock):
    return SessionService(session_config, clock=clock)


@pytest.fixture
def config():
    return Config(
        _env_file=None,
        database_url=None,
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        max_key_hours=720,
        session_ttl_hours=24,
    )


@pytest.fixture
def client(config, clock):
    app = App(config, clock=clock)
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """Client carrying a live admin session cookie."""
    response = client.post("/admin/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
