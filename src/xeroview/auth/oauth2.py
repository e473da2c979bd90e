"""
OAuth2 provider — authorization URLs, code exchange, refresh, and
authenticated httpx clients.

Implements the Xero three-legged authorization-code flow:

1. ``get_auth_url(state)`` sends the user to Xero's consent screen.
2. ``get_token_from_code(code)`` trades the returned code for tokens.
3. ``client(session)`` hands out an ``httpx.AsyncClient`` that attaches the
   bearer token to every request and refreshes it on demand, persisting the
   new token through the session repository before the request goes out.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import OrderedDict
from typing import Any, AsyncGenerator, Generator
from urllib.parse import urlencode

import httpx

from xeroview.auth.session import Session
from xeroview.auth.tokens import TokenData
from xeroview.config import AppConfig
from xeroview.errors import AuthError, StateMismatchError

logger = logging.getLogger("xeroview.auth.oauth2")


# ---------------------------------------------------------------------------
# State helpers
# ---------------------------------------------------------------------------


class StateStore:
    """Remembers issued ``state`` values until they are used or go stale.

    Each value verifies exactly once.
    """

    def __init__(self, ttl: float = 600.0, max_size: int = 256) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._issued: OrderedDict[str, float] = OrderedDict()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._issued)

    def issue(self) -> str:
        state = new_state()
        with self._guard:
            self._purge()
            self._issued[state] = time.monotonic() + self.ttl
            while len(self._issued) > self.max_size:
                self._issued.popitem(last=False)
        return state

    def consume(self, state: str | None) -> None:
        """Verify and forget *state*.

        Raises:
            StateMismatchError: If *state* was not issued, expired, or was
                already consumed.
        """
        with self._guard:
            self._purge()
            if not state or self._issued.pop(state, None) is None:
                raise StateMismatchError("Invalid or expired OAuth2 state")

    def _purge(self) -> None:
        now = time.monotonic()
        for key in [k for k, deadline in self._issued.items() if deadline < now]:
            del self._issued[key]


# ---------------------------------------------------------------------------
# Bearer auth flow
# ---------------------------------------------------------------------------


class SessionAuth(httpx.Auth):
    """httpx auth flow bound to one session.

    Refreshes an expired access token before the request is sent.
    """

    def __init__(self, provider: OAuth2Provider, session: Session) -> None:
        self._provider = provider
        self._session = session

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("SessionAuth requires an httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._provider.ensure_fresh(self._session)
        request.headers["Authorization"] = f"{token.token_type or 'Bearer'} {token.access_token}"
        yield request


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class OAuth2Provider:
    """Xero OAuth2 client.

    Usage::

        provider = OAuth2Provider(config)
        url = provider.get_auth_url(state)
        token = await provider.get_token_from_code(code)
        repository.create_session(NIL_USER, token)

        async with provider.client(Session(token, repository)) as client:
            resp = await client.get("https://api.xero.com/connections")
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.client_id = config.client_id
        self.client_secret = config.client_secret
        self.scopes = list(config.scopes)
        self.redirect_url = config.redirect_url
        self.expiry_buffer = config.expiry_buffer
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the client used for token endpoint calls."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.http_timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    # ------------------------------------------------------------------
    # Authorization URL
    # ------------------------------------------------------------------

    def get_auth_url(self, state: str) -> str:
        """Build the URL that starts the consent flow.

        The caller owns *state* and must check it on the callback.
        """
        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{self.config.auth_url}?{urlencode(params)}"

    # ------------------------------------------------------------------
    # Token endpoint
    # ------------------------------------------------------------------

    async def _token_request(self, payload: dict[str, str], action: str) -> dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.post(
                self.config.token_url,
                data=payload,
                auth=(self.client_id, self.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise AuthError(f"{action} failed: {e}") from e

        if not resp.is_success:
            detail = _error_detail(resp)
            logger.warning("%s rejected with HTTP %d: %s", action, resp.status_code, detail)
            raise AuthError(f"{action} rejected ({resp.status_code}): {detail}")

        try:
            data = resp.json()
        except ValueError as e:
            raise AuthError(f"{action} returned a malformed token payload") from e
        if not isinstance(data, dict) or not data.get("access_token"):
            raise AuthError(f"{action} returned no access token")
        return data

    async def get_token_from_code(self, code: str) -> TokenData:
        """Exchange an authorization code for tokens.

        Raises:
            AuthError: On transport failure, a non-2xx response, or a
                malformed token payload.
        """
        if not code:
            raise AuthError("Missing authorization code")

        data = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_url,
            },
            "Code exchange",
        )
        token = _parse_token(data, "Code exchange")
        logger.info("Exchanged auth code for tokens (expires in %ds)", token.expires_in)
        return token

    async def refresh(self, token: TokenData | None) -> TokenData:
        """Trade *token*'s refresh token for a new token.

        Raises:
            AuthError: If there is no refresh token or Xero rejects it.
        """
        if token is None or not token.refresh_token:
            raise AuthError("No refresh token available. Please authenticate first.")

        logger.debug("Refreshing access token")
        data = await self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": token.refresh_token,
            },
            "Token refresh",
        )
        fresh = _parse_token(data, "Token refresh")

        # Xero rotates refresh tokens, but keep the old one if none came back
        if not fresh.refresh_token:
            fresh.refresh_token = token.refresh_token

        logger.info("Refreshed access token (expires in %ds)", fresh.expires_in)
        return fresh

    async def revoke(self, token: TokenData) -> None:
        """Revoke *token*'s refresh token (and with it the grant).

        Raises:
            AuthError: If the revocation endpoint fails.
        """
        if not token.refresh_token:
            return
        client = await self._get_client()
        try:
            resp = await client.post(
                self.config.revoke_url,
                data={"token": token.refresh_token},
                auth=(self.client_id, self.client_secret),
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Token revocation failed: {e}") from e
        if not resp.is_success:
            raise AuthError(f"Token revocation rejected ({resp.status_code})")
        logger.info("Revoked refresh token")

    # ------------------------------------------------------------------
    # Authenticated transport
    # ------------------------------------------------------------------

    async def ensure_fresh(self, session: Session) -> TokenData:
        """Return a usable token for *session*, refreshing if needed.

        Refresh and persist happen under the user's lock. A request that
        waited on the lock picks up the token stored by the one that
        refreshed instead of refreshing again.
        """
        repository = session.repository
        async with repository.lock(session.user_id):
            token = repository.get_session(session.user_id) or session.token
            if token.expires_within(self.expiry_buffer):
                logger.info("Access token expired for user %s, refreshing", session.user_id)
                token = await self.refresh(token)
                repository.update_session(session.user_id, token)
            session.token = token
            return token

    def client(self, session: Session) -> httpx.AsyncClient:
        """Return an ``httpx.AsyncClient`` bound to *session*.

        Use it as an async context manager so the connection pool closes.
        """
        headers = {"Accept": "application/json"}
        if session.tenant_id:
            headers["Xero-Tenant-Id"] = str(session.tenant_id)
        return httpx.AsyncClient(
            auth=SessionAuth(self, session),
            headers=headers,
            timeout=self.config.http_timeout,
            transport=self._transport,
        )


def _parse_token(data: dict[str, Any], action: str) -> TokenData:
    try:
        return TokenData.from_oauth_response(data)
    except (KeyError, TypeError, ValueError) as e:
        raise AuthError(f"{action} returned a malformed token payload") from e


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return str(body)[:200]


def new_state() -> str:
    """Generate a random state value for one authorization request."""
    return secrets.token_urlsafe(32)
