"""
Xero Accounting API resources.

Each remote resource type is described by a ``Resource`` and handled by the
same handful of functions: list, get one, create, update, remove. Every
decoded payload has its legacy ``/Date(...)/`` strings rewritten to RFC3339
before it reaches a caller.

Xero API docs:
  https://developer.xero.com/documentation/api/accounting/overview
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from xeroview.config import XERO_API_URL
from xeroview.connectors import gateway
from xeroview.dates import normalize_dates
from xeroview.errors import FetchError

logger = logging.getLogger("xeroview.connectors.accounting")


@dataclass(frozen=True)
class Resource:
    """A Xero Accounting API collection.

    Attributes:
        name: Collection key in the JSON envelope, e.g. ``Contacts``.
        path: Endpoint path under the API root (defaults to ``name``).
        title: Human-readable label.
    """

    name: str
    path: str = ""
    title: str = ""
    base_url: str = XERO_API_URL

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.path or self.name}"

    def item_url(self, item_id: str) -> str:
        return f"{self.url}/{item_id}"

    @property
    def label(self) -> str:
        return self.title or self.name


ACCOUNTS = Resource("Accounts", title="Accounts")
BANK_TRANSACTIONS = Resource("BankTransactions", title="Bank Transactions")
BANK_TRANSFERS = Resource("BankTransfers", title="Bank Transfers")
BRANDING_THEMES = Resource("BrandingThemes", title="Branding Themes")
CONTACT_GROUPS = Resource("ContactGroups", title="Contact Groups")
CONTACTS = Resource("Contacts", title="Contacts")
CREDIT_NOTES = Resource("CreditNotes", title="Credit Notes")
CURRENCIES = Resource("Currencies", title="Currencies")
EMPLOYEES = Resource("Employees", title="Employees")
INVOICE_REMINDERS = Resource("InvoiceReminders", path="InvoiceReminders/Settings", title="Invoice Reminders")
INVOICES = Resource("Invoices", title="Invoices")
ITEMS = Resource("Items", title="Invoice Items")
ORGANISATIONS = Resource("Organisations", path="Organisation", title="Organisations")

RESOURCES: dict[str, Resource] = {
    r.name: r
    for r in (
        ACCOUNTS,
        BANK_TRANSACTIONS,
        BANK_TRANSFERS,
        BRANDING_THEMES,
        CONTACT_GROUPS,
        CONTACTS,
        CREDIT_NOTES,
        CURRENCIES,
        EMPLOYEES,
        INVOICE_REMINDERS,
        INVOICES,
        ITEMS,
        ORGANISATIONS,
    )
}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode(resource: Resource, raw: bytes | str) -> list[dict[str, Any]]:
    """Decode a Xero response body into a list of items.

    Accepts the usual ``{"Contacts": [...]}`` envelope as well as a bare
    JSON list.

    Raises:
        FetchError: If the body is not JSON, has no usable item list, or
            carries a date that cannot be converted.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise FetchError(f"{resource.name}: response is not valid JSON") from e

    if isinstance(data, dict):
        items = data.get(resource.name, [])
    else:
        items = data

    if not isinstance(items, list):
        raise FetchError(f"{resource.name}: expected a list of items")

    try:
        return normalize_dates(items)
    except ValueError as e:
        raise FetchError(f"{resource.name}: {e}") from e


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def find_all(
    client: httpx.AsyncClient,
    resource: Resource,
    params: dict[str, Any] | None = None,
    *,
    modified_since: datetime | None = None,
) -> list[dict[str, Any]]:
    """List every item of *resource* for the client's tenant.

    Additional query string parameters such as ``where`` and ``order`` go in
    *params*. ``modified_since`` becomes an ``If-Modified-Since`` header.
    """
    headers = None
    if modified_since is not None:
        headers = {"If-Modified-Since": _rfc3339(modified_since)}

    raw = await gateway.find(client, resource.url, headers=headers, params=params)
    items = decode(resource, raw)
    logger.debug("Fetched %d %s", len(items), resource.name)
    return items


async def find_one(
    client: httpx.AsyncClient, resource: Resource, item_id: str
) -> dict[str, Any] | None:
    """Fetch a single item by its Xero id, or None if the body is empty."""
    raw = await gateway.find(client, resource.item_url(item_id))
    items = decode(resource, raw)
    return items[0] if items else None


async def create(
    client: httpx.AsyncClient, resource: Resource, items: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Create *items* and return them as Xero stored them."""
    body = json.dumps({resource.name: items})
    raw = await gateway.create(client, resource.url, body)
    created = decode(resource, raw)
    logger.info("Created %d %s", len(created), resource.name)
    return created


async def update(
    client: httpx.AsyncClient, resource: Resource, item_id: str, item: dict[str, Any]
) -> list[dict[str, Any]]:
    """Update the item *item_id* with the fields in *item*."""
    body = json.dumps({resource.name: [item]})
    raw = await gateway.update(client, resource.item_url(item_id), body)
    return decode(resource, raw)


async def remove(
    client: httpx.AsyncClient, resource: Resource, item_id: str
) -> list[dict[str, Any]]:
    """Delete the item *item_id*. Xero echoes what it removed."""
    raw = await gateway.remove(client, resource.item_url(item_id))
    if not raw.strip():
        return []
    return decode(resource, raw)
