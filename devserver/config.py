"""
Configuration for the Bridge dev server.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class DevServerSettings(BaseSettings):
    """Dev server configuration loaded from environment."""

    host: str = Field(default="127.0.0.1", description="Bind host")
    port: int = Field(default=8000, description="Bind port")

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    # Seeded roles (principals)
    admins: list[str] = Field(default=[], description="Principals that start as admins")
    pending_admins: list[str] = Field(
        default=[], description="Principals promoted by promoteAdminUsers"
    )

    log_level: str = Field(default="INFO", description="Root log level")

    model_config = {"env_prefix": "BRIDGE_DEVSERVER_"}
