"""
xeroview configuration management.

Supports loading from YAML files, a local ``.env`` file, environment
variables, and keyword overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("xeroview.config")

XERO_AUTH_URL = "https://login.xero.com/identity/connect/authorize"
XERO_TOKEN_URL = "https://identity.xero.com/connect/token"
XERO_REVOKE_URL = "https://identity.xero.com/connect/revocation"
XERO_CONNECTIONS_URL = "https://api.xero.com/connections"
XERO_API_URL = "https://api.xero.com/api.xro/2.0"

_DEFAULT_SCOPES = [
    "openid",
    "profile",
    "email",
    "offline_access",
    "accounting.transactions",
    "accounting.contacts",
    "accounting.settings",
]


class AppConfig(BaseModel):
    """Root configuration for xeroview. Frozen once loaded."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(default="", description="Xero app client id")
    client_secret: str = Field(default="", description="Xero app client secret")
    scopes: list[str] = Field(default_factory=lambda: list(_DEFAULT_SCOPES))
    redirect_url: str = Field(default="http://localhost:3000/auth/xero/callback")

    auth_url: str = XERO_AUTH_URL
    token_url: str = XERO_TOKEN_URL
    revoke_url: str = XERO_REVOKE_URL

    # Server settings
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    keep_alive_timeout: int = Field(default=60, ge=1)
    graceful_timeout: float = Field(default=15.0, ge=0.0)
    http_timeout: float = Field(default=15.0, gt=0.0)
    log_level: str = "INFO"

    # Refresh access tokens this many seconds before they actually expire
    expiry_buffer: int = Field(default=60, ge=0)

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_url)

    @classmethod
    def load(
        cls,
        config_path: str | None = None,
        *,
        env_file: str | None = ".env",
        **overrides: Any,
    ) -> AppConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            else:
                logger.warning("Config file %s not found, using defaults", config_path)

        # 2. Pull a local .env into the environment (never overrides real env)
        if env_file:
            if Path(env_file).exists():
                load_dotenv(env_file)
            else:
                logger.info("No .env file found")

        # 3. Override from environment variables
        env_map = {
            "CLIENT_ID": "client_id",
            "CLIENT_SECRET": "client_secret",
            "SCOPES": "scopes",
            "REDIRECT_URL": "redirect_url",
            "XEROVIEW_HOST": "host",
            "XEROVIEW_PORT": "port",
            "XEROVIEW_LOG_LEVEL": "log_level",
        }
        for env_key, field_name in env_map.items():
            value = os.environ.get(env_key)
            if value:
                data[field_name] = value

        # 4. Apply keyword overrides
        data.update({k: v for k, v in overrides.items() if v is not None})

        return cls.model_validate(data)
