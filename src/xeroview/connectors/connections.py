"""
Tenant resolver — which Xero organisations is this token connected to?

Tenants are fetched on demand and never cached; a user can disconnect an
organisation from the Xero side at any time.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from xeroview.config import XERO_CONNECTIONS_URL
from xeroview.errors import TenantConnectionError

logger = logging.getLogger("xeroview.connectors.connections")


class Tenant(BaseModel):
    """A Xero organisation (or practice) connected to the current token."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    tenant_id: str = Field(alias="tenantId")
    tenant_type: str = Field(default="", alias="tenantType")
    tenant_name: str | None = Field(default=None, alias="tenantName")
    created_date_utc: str | None = Field(default=None, alias="createdDateUtc")
    updated_date_utc: str | None = Field(default=None, alias="updatedDateUtc")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


async def get_tenants(
    client: httpx.AsyncClient, url: str = XERO_CONNECTIONS_URL
) -> list[Tenant]:
    """List the tenants the client's token is authorised for.

    Args:
        client: An authenticated client from ``OAuth2Provider.client``.
        url: Override for the connections endpoint.

    Raises:
        TenantConnectionError: On transport failure, a non-2xx response, or
            a payload that is not a list of connections.
    """
    try:
        resp = await client.get(url)
    except httpx.HTTPError as e:
        raise TenantConnectionError(f"Could not reach Xero connections: {e}") from e

    if not resp.is_success:
        logger.warning("Xero connections returned HTTP %d", resp.status_code)
        raise TenantConnectionError(f"Xero connections returned HTTP {resp.status_code}")

    try:
        raw = resp.json()
        if not isinstance(raw, list):
            raise ValueError("expected a JSON list")
        tenants = [Tenant.model_validate(item) for item in raw]
    except (ValueError, ValidationError) as e:
        raise TenantConnectionError(f"Malformed Xero connections payload: {e}") from e

    logger.info("Found %d connected Xero tenant(s)", len(tenants))
    return tenants
