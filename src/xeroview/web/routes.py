"""
HTTP routes: status page, Xero auth flow, and per-resource list views.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from xeroview import __version__
from xeroview.auth.oauth2 import OAuth2Provider, StateStore
from xeroview.auth.session import NIL_USER, SessionRepository
from xeroview.connectors import accounting
from xeroview.connectors.accounting import Resource
from xeroview.connectors.connections import get_tenants
from xeroview.errors import AuthError, TenantConnectionError
from xeroview.web import pages
from xeroview.web.fanout import current_session, fetch_across_tenants

logger = logging.getLogger("xeroview.web.routes")

router = APIRouter()

# Path -> resource for the aggregated list views
LIST_VIEWS: dict[str, Resource] = {
    "/contacts": accounting.CONTACTS,
    "/invoices": accounting.INVOICES,
    "/organisations": accounting.ORGANISATIONS,
    "/accounts": accounting.ACCOUNTS,
    "/bankTransactions": accounting.BANK_TRANSACTIONS,
    "/bankTransfers": accounting.BANK_TRANSFERS,
    "/brandingThemes": accounting.BRANDING_THEMES,
    "/contactGroups": accounting.CONTACT_GROUPS,
    "/creditNotes": accounting.CREDIT_NOTES,
    "/currencies": accounting.CURRENCIES,
    "/employees": accounting.EMPLOYEES,
    "/invoiceReminders": accounting.INVOICE_REMINDERS,
    "/invoiceItems": accounting.ITEMS,
}


def get_provider(request: Request) -> OAuth2Provider:
    return request.app.state.provider


def get_repository(request: Request) -> SessionRepository:
    return request.app.state.repository


def get_states(request: Request) -> StateStore:
    return request.app.state.states


# --- Status & health ---


@router.get("/", response_class=HTMLResponse)
async def home(repository: SessionRepository = Depends(get_repository)) -> HTMLResponse:
    """Connected / not connected status page."""
    token = repository.get_session(NIL_USER)
    if token is None:
        return HTMLResponse(pages.render_index())
    return HTMLResponse(pages.render_connected(token))


@router.get("/health")
async def health(repository: SessionRepository = Depends(get_repository)) -> dict:
    return {
        "status": "healthy",
        "service": "xeroview",
        "version": __version__,
        "connected": repository.get_session(NIL_USER) is not None,
    }


# --- Authentication ---


@router.get("/auth/xero")
async def start_auth(
    provider: OAuth2Provider = Depends(get_provider),
    states: StateStore = Depends(get_states),
) -> RedirectResponse:
    """Send the browser to Xero's consent screen."""
    state = states.issue()
    return RedirectResponse(provider.get_auth_url(state), status_code=302)


@router.get("/auth/xero/callback", response_class=HTMLResponse)
async def auth_callback(
    code: str = "",
    state: str | None = None,
    error: str | None = None,
    provider: OAuth2Provider = Depends(get_provider),
    repository: SessionRepository = Depends(get_repository),
    states: StateStore = Depends(get_states),
) -> HTMLResponse:
    """Exchange the returned code for tokens and start a session."""
    if error:
        raise AuthError(f"Xero authorization failed: {error}")
    states.consume(state)

    token = await provider.get_token_from_code(code)
    repository.create_session(NIL_USER, token)
    logger.info("Xero authorization complete")
    return HTMLResponse(pages.render_connected(token))


@router.get("/refresh")
async def refresh_token(
    provider: OAuth2Provider = Depends(get_provider),
    repository: SessionRepository = Depends(get_repository),
) -> RedirectResponse:
    """Force a token refresh and persist the result."""
    async with repository.lock(NIL_USER):
        session = current_session(repository)
        token = await provider.refresh(session.token)
        repository.update_session(NIL_USER, token)
    return RedirectResponse("/", status_code=302)


@router.get("/logout")
async def logout(
    provider: OAuth2Provider = Depends(get_provider),
    repository: SessionRepository = Depends(get_repository),
) -> RedirectResponse:
    """Revoke the grant and forget the session."""
    token = repository.get_session(NIL_USER)
    if token is not None:
        try:
            await provider.revoke(token)
        except AuthError as e:
            logger.warning("Could not revoke Xero token, dropping session anyway: %s", e)
        repository.delete_session(NIL_USER)
    return RedirectResponse("/", status_code=302)


# --- Xero data ---


@router.get("/connections")
async def connections(
    provider: OAuth2Provider = Depends(get_provider),
    repository: SessionRepository = Depends(get_repository),
) -> JSONResponse:
    """JSON list of the tenants the token is authorised for."""
    session = current_session(repository)
    async with provider.client(session) as client:
        tenants = await get_tenants(client)
    return JSONResponse([t.to_json() for t in tenants])


@router.get("/contacts/create")
async def create_contact(
    provider: OAuth2Provider = Depends(get_provider),
    repository: SessionRepository = Depends(get_repository),
) -> RedirectResponse:
    """Create a throwaway contact in the first connected tenant.

    The tenant and the contact details are fixed; there is no form yet.
    """
    session = current_session(repository)
    async with provider.client(session) as client:
        tenants = await get_tenants(client)
    if not tenants:
        raise TenantConnectionError("No Xero organisation is connected")

    marker = uuid.uuid4()
    contact = {
        "Name": f"Test {marker}",
        "FirstName": "Test FirstName",
        "LastName": "Test LastName",
        "EmailAddress": f"test-{marker}@example.com",
    }
    async with provider.client(session.for_tenant(tenants[0].tenant_id)) as client:
        await accounting.create(client, accounting.CONTACTS, [contact])
    return RedirectResponse("/", status_code=302)


def _list_view(resource: Resource):
    async def view(
        provider: OAuth2Provider = Depends(get_provider),
        repository: SessionRepository = Depends(get_repository),
    ) -> HTMLResponse:
        items = await fetch_across_tenants(
            provider,
            repository,
            lambda client, tenant: accounting.find_all(client, resource),
        )
        return HTMLResponse(pages.render_list(resource, items))

    view.__name__ = f"list_{resource.name.lower()}"
    view.__doc__ = f"{resource.label} across every connected tenant."
    return view


for _path, _resource in LIST_VIEWS.items():
    router.add_api_route(
        _path,
        _list_view(_resource),
        methods=["GET"],
        response_class=HTMLResponse,
        name=_resource.name,
    )
