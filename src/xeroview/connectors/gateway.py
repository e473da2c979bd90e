"""
Resource gateway — raw find/create/update/remove against the Xero API.

Returns response bodies untouched; decoding and date normalisation live in
``xeroview.connectors.accounting``. No call here is retried.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from xeroview.errors import FetchError

logger = logging.getLogger("xeroview.connectors.gateway")

_JSON_HEADERS = {"Content-Type": "application/json"}


async def _send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    body: bytes | str | None = None,
) -> bytes:
    logger.debug("%s %s", method, url)
    try:
        resp = await client.request(method, url, headers=headers, params=params, content=body)
    except httpx.HTTPError as e:
        raise FetchError(f"{method} {url} failed: {e}") from e

    if not resp.is_success:
        logger.warning("%s %s returned HTTP %d", method, url, resp.status_code)
        raise FetchError(
            f"{method} {url} returned HTTP {resp.status_code}",
            remote_status=resp.status_code,
        )
    return resp.content


async def find(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> bytes:
    """GET *url* with optional extra headers (e.g. ``If-Modified-Since``)."""
    return await _send(client, "GET", url, headers=headers, params=params)


async def create(client: httpx.AsyncClient, url: str, body: bytes | str) -> bytes:
    """POST a JSON *body* to a collection URL."""
    return await _send(client, "POST", url, headers=_JSON_HEADERS, body=body)


async def update(client: httpx.AsyncClient, url: str, body: bytes | str) -> bytes:
    """PUT a JSON *body* to a single resource URL."""
    return await _send(client, "PUT", url, headers=_JSON_HEADERS, body=body)


async def remove(client: httpx.AsyncClient, url: str) -> bytes:
    """DELETE a single resource URL."""
    return await _send(client, "DELETE", url)
