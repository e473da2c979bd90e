"""Shared fixtures: a fake Xero backend served through httpx.MockTransport."""

from __future__ import annotations

import json
import time
from urllib.parse import parse_qsl

import httpx
import pytest

from xeroview.auth.oauth2 import OAuth2Provider
from xeroview.auth.session import InMemorySessionRepository
from xeroview.auth.tokens import TokenData
from xeroview.config import AppConfig


MOCK_CONNECTIONS = [
    {
        "id": "conn-1",
        "tenantId": "tenant-a",
        "tenantType": "ORGANISATION",
        "tenantName": "Demo Company (AU)",
        "createdDateUtc": "2020-01-20T05:00:00.0000000",
        "updatedDateUtc": "2020-01-20T05:00:00.0000000",
    },
    {
        "id": "conn-2",
        "tenantId": "tenant-b",
        "tenantType": "ORGANISATION",
        "tenantName": "Demo Company (NZ)",
    },
]

MOCK_CONTACTS = {
    "tenant-a": [
        {
            "ContactID": "c-001",
            "Name": "Staples",
            "EmailAddress": "ap@staples.example",
            "ContactStatus": "ACTIVE",
            "UpdatedDateUTC": "/Date(1580000000000+0000)/",
        },
    ],
    "tenant-b": [
        {
            "ContactID": "c-101",
            "Name": "Widget Co",
            "ContactStatus": "ACTIVE",
            "UpdatedDateUTC": "/Date(1580000000000+1300)/",
        },
        {
            "ContactID": "c-102",
            "Name": "<script>alert(1)</script>",
            "ContactStatus": "ARCHIVED",
        },
    ],
}


class FakeXero:
    """Just enough of identity.xero.com and api.xero.com for the tests."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.grants: list[str] = []
        self.revoked: list[str] = []
        self.connections = list(MOCK_CONNECTIONS)
        self.data: dict[str, dict[str, list[dict]]] = {
            "Contacts": {tenant: list(items) for tenant, items in MOCK_CONTACTS.items()},
        }
        self.reject_refresh = False
        self.connections_status = 200
        self._issued = 0

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.xero.com"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host == "identity.xero.com":
            form = dict(parse_qsl(request.content.decode()))
            if path == "/connect/revocation":
                self.revoked.append(form.get("token", ""))
                return httpx.Response(200)
            return self._token(form)

        if path == "/connections":
            if self.connections_status != 200:
                return httpx.Response(self.connections_status, json={"Title": "Unauthorized"})
            return httpx.Response(200, json=self.connections)

        if path.startswith("/api.xro/2.0/"):
            resource = path.split("/")[3]
            tenant = request.headers.get("Xero-Tenant-Id", "")
            if request.method == "POST":
                body = json.loads(request.content)
                created = [{**item, "ContactID": f"new-{i}"} for i, item in enumerate(body[resource])]
                self.data.setdefault(resource, {}).setdefault(tenant, []).extend(created)
                return httpx.Response(200, json={"Status": "OK", resource: created})
            items = self.data.get(resource, {}).get(tenant, [])
            return httpx.Response(200, json={"Status": "OK", resource: [dict(i) for i in items]})

        return httpx.Response(404)

    def _token(self, form: dict[str, str]) -> httpx.Response:
        grant = form.get("grant_type", "")
        self.grants.append(grant)
        if grant == "authorization_code" and form.get("code") == "bad-code":
            return httpx.Response(400, json={"error": "invalid_grant"})
        if grant == "refresh_token" and self.reject_refresh:
            return httpx.Response(400, json={"error": "invalid_grant"})

        self._issued += 1
        return httpx.Response(200, json={
            "access_token": f"access-{self._issued}",
            "refresh_token": f"refresh-{self._issued}",
            "token_type": "Bearer",
            "expires_in": 1800,
            "scope": "openid offline_access accounting.contacts",
            "id_token": "id-token",
        })


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        client_id="test_client",
        client_secret="test_secret",
        redirect_url="http://localhost:3000/auth/xero/callback",
        scopes=["openid", "offline_access", "accounting.contacts"],
    )


@pytest.fixture
def xero() -> FakeXero:
    return FakeXero()


@pytest.fixture
def provider(config: AppConfig, xero: FakeXero) -> OAuth2Provider:
    return OAuth2Provider(config, transport=xero.transport())


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


def make_token(access: str = "valid", refresh: str = "ref", ttl: float = 3600) -> TokenData:
    return TokenData(
        access_token=access,
        refresh_token=refresh,
        expires_at=time.time() + ttl,
    )
