"""
OAuth2 token value object.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Refresh this many seconds before the access token actually expires
DEFAULT_EXPIRY_BUFFER = 60


@dataclass
class TokenData:
    """Holds OAuth2 token data with expiry tracking."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    expires_at: float = 0.0
    scope: str = ""
    id_token: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_expired(self) -> bool:
        """Check if the access token is expired (with the default buffer)."""
        return self.expires_within(DEFAULT_EXPIRY_BUFFER)

    def expires_within(self, seconds: float) -> bool:
        return time.time() > (self.expires_at - seconds)

    @property
    def expiry(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "expires_at": self.expires_at,
            "scope": self.scope,
            "id_token": self.id_token,
            "extra": self.extra,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenData:
        return cls(
            access_token=data.get("access_token", ""),
            refresh_token=data.get("refresh_token", ""),
            token_type=data.get("token_type", "Bearer"),
            expires_in=data.get("expires_in", 1800),
            expires_at=data.get("expires_at", 0.0),
            scope=data.get("scope", ""),
            id_token=data.get("id_token", ""),
            extra=data.get("extra", {}),
        )

    @classmethod
    def from_oauth_response(cls, data: dict[str, Any]) -> TokenData:
        """Parse a standard OAuth2 token response.

        Raises:
            KeyError: If ``access_token`` is missing.
            ValueError: If ``expires_in`` is not a number.
        """
        expires_in = int(data.get("expires_in", 1800))
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            token_type=data.get("token_type", "Bearer"),
            expires_in=expires_in,
            expires_at=time.time() + expires_in,
            scope=data.get("scope", ""),
            id_token=data.get("id_token", ""),
            extra={k: v for k, v in data.items() if k not in {
                "access_token", "refresh_token", "token_type", "expires_in", "scope", "id_token",
            }},
        )
