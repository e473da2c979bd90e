"""Tests for the tenant resolver with mocked Xero responses."""

from __future__ import annotations

import time

import httpx
import pytest

from xeroview.auth.oauth2 import OAuth2Provider
from xeroview.auth.session import NIL_USER, InMemorySessionRepository, Session
from xeroview.auth.tokens import TokenData
from xeroview.connectors.connections import Tenant, get_tenants
from xeroview.errors import AuthError, TenantConnectionError

from conftest import MOCK_CONNECTIONS, FakeXero


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTenant:
    def test_from_wire_names(self) -> None:
        tenant = Tenant.model_validate(MOCK_CONNECTIONS[0])
        assert tenant.id == "conn-1"
        assert tenant.tenant_id == "tenant-a"
        assert tenant.tenant_type == "ORGANISATION"
        assert tenant.tenant_name == "Demo Company (AU)"
        assert tenant.created_date_utc == "2020-01-20T05:00:00.0000000"

    def test_optional_fields(self) -> None:
        tenant = Tenant.model_validate({"tenantId": "t-1"})
        assert tenant.tenant_name is None
        assert tenant.updated_date_utc is None

    def test_to_json_uses_wire_names(self) -> None:
        data = Tenant.model_validate(MOCK_CONNECTIONS[1]).to_json()
        assert data["tenantId"] == "tenant-b"
        assert data["tenantName"] == "Demo Company (NZ)"
        assert "tenant_id" not in data


class TestGetTenants:
    @pytest.mark.asyncio
    async def test_lists_tenants_in_order(self) -> None:
        async with _client(lambda request: httpx.Response(200, json=MOCK_CONNECTIONS)) as client:
            tenants = await get_tenants(client)
        assert [t.tenant_id for t in tenants] == ["tenant-a", "tenant-b"]

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        async with _client(lambda request: httpx.Response(200, json=[])) as client:
            assert await get_tenants(client) == []

    @pytest.mark.asyncio
    async def test_custom_url(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[])

        async with _client(handler) as client:
            await get_tenants(client, url="https://example.test/connections")
        assert seen == ["https://example.test/connections"]

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        async with _client(lambda request: httpx.Response(503, text="down")) as client:
            with pytest.raises(TenantConnectionError, match="HTTP 503"):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_not_a_list(self) -> None:
        async with _client(lambda request: httpx.Response(200, json={"tenantId": "x"})) as client:
            with pytest.raises(TenantConnectionError, match="Malformed"):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(TenantConnectionError, match="Malformed"):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_item_without_tenant_id(self) -> None:
        async with _client(lambda request: httpx.Response(200, json=[{"id": "c"}])) as client:
            with pytest.raises(TenantConnectionError):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with _client(boom) as client:
            with pytest.raises(TenantConnectionError, match="timed out"):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_wrapped(
        self, provider: OAuth2Provider, repository: InMemorySessionRepository, xero: FakeXero
    ) -> None:
        xero.reject_refresh = True
        stale = TokenData(access_token="stale", refresh_token="r", expires_at=time.time() - 10)
        repository.create_session(NIL_USER, stale)

        async with provider.client(Session(stale, repository)) as client:
            with pytest.raises(AuthError):
                await get_tenants(client)

    @pytest.mark.asyncio
    async def test_through_authenticated_client(
        self, provider: OAuth2Provider, repository: InMemorySessionRepository, xero: FakeXero
    ) -> None:
        token = TokenData(access_token="ok", refresh_token="r", expires_at=time.time() + 3600)
        repository.create_session(NIL_USER, token)

        async with provider.client(Session(token, repository)) as client:
            tenants = await get_tenants(client)

        assert len(tenants) == 2
        assert xero.api_requests[-1].headers["Authorization"] == "Bearer ok"
