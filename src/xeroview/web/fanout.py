"""
Fetch one kind of data from every connected tenant.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable

import httpx

from xeroview.auth.oauth2 import OAuth2Provider
from xeroview.auth.session import NIL_USER, Session, SessionRepository
from xeroview.connectors.connections import Tenant, get_tenants
from xeroview.errors import AuthError

logger = logging.getLogger("xeroview.web.fanout")

TenantFetch = Callable[[httpx.AsyncClient, Tenant], Awaitable[list[Any]]]


def current_session(repository: SessionRepository, user_id: uuid.UUID = NIL_USER) -> Session:
    """Load the stored session for *user_id*.

    Raises:
        AuthError: If the user has not connected to Xero yet.
    """
    token = repository.get_session(user_id)
    if token is None:
        raise AuthError("Not connected to Xero. Visit /auth/xero first.")
    return Session(token=token, repository=repository, user_id=user_id)


async def fetch_across_tenants(
    provider: OAuth2Provider,
    repository: SessionRepository,
    fetch: TenantFetch,
    user_id: uuid.UUID = NIL_USER,
) -> list[Any]:
    """Run *fetch* against each tenant and concatenate the results.

    Tenants are resolved fresh on every call. The first failure aborts the
    whole fan-out.
    """
    session = current_session(repository, user_id)

    async with provider.client(session) as client:
        tenants = await get_tenants(client)

    results: list[Any] = []
    for tenant in tenants:
        async with provider.client(session.for_tenant(tenant.tenant_id)) as client:
            batch = await fetch(client, tenant)
        logger.debug("Tenant %s returned %d record(s)", tenant.tenant_id, len(batch))
        results.extend(batch)
    return results
