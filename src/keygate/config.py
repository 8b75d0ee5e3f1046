from datetime import timedelta
from typing import Literal

from pydantic_settings import BaseSettings

from keygate.core.modules.session.models import SessionConfig


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    debug: bool = False
    production: bool = False  # Enables the Secure flag on the session cookie
    database_url: str | None = None  # MongoDB URL; in-memory key storage when unset
    cors_origins: list[str] = []
    max_key_hours: int = 720  # Upper bound for access key TTL
    admin_username: str = "admin"
    admin_password: str = "admin123"
    admin_password_hash: str | None = None  # bcrypt hash, takes precedence over admin_password
    session_ttl_hours: int = 24
    ip_preference: Literal["public", "private"] = "public"  # Which address wins when both are present

    model_config = {
        "env_file": [".env"],
        "env_prefix": "KEYGATE_",
        "extra": "ignore",
    }

    def session_config(self) -> SessionConfig:
        """Build the operator identity and TTL for the session store."""
        return SessionConfig(
            username=self.admin_username,
            password=self.admin_password,
            password_hash=self.admin_password_hash,
            ttl=timedelta(hours=self.session_ttl_hours),
        )
