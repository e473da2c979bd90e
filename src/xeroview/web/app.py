"""
FastAPI application factory for the xeroview front end.

The provider, session repository and state store are built once and hung
off ``app.state``; handlers receive them through dependencies.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from xeroview.auth.oauth2 import OAuth2Provider, StateStore
from xeroview.auth.session import InMemorySessionRepository, SessionRepository
from xeroview.config import AppConfig
from xeroview.errors import XeroViewError
from xeroview.web import pages

logger = logging.getLogger("xeroview.web.app")

# Routes that answer with JSON, errors included
_JSON_PATHS = {"/connections", "/health"}


async def handle_xeroview_error(request: Request, exc: XeroViewError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)

    if request.url.path in _JSON_PATHS:
        error_dict = {"code": type(exc).__name__, "message": exc.message}
        return JSONResponse(status_code=exc.status_code, content={"error": error_dict})
    return HTMLResponse(pages.render_error(exc.status_code, exc.message), status_code=exc.status_code)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)

    message = "Internal server error"
    if request.url.path in _JSON_PATHS:
        return JSONResponse(status_code=500, content={"error": {"code": "InternalError", "message": message}})
    return HTMLResponse(pages.render_error(500, message), status_code=500)


def create_app(
    config: AppConfig | None = None,
    *,
    provider: OAuth2Provider | None = None,
    repository: SessionRepository | None = None,
    states: StateStore | None = None,
) -> FastAPI:
    if config is None:
        config = AppConfig.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not config.is_configured:
            logger.warning("CLIENT_ID / CLIENT_SECRET / REDIRECT_URL not set; Xero auth will fail")
        logger.info("xeroview ready, redirect URL %s", config.redirect_url)
        yield
        await app.state.provider.close()
        logger.info("xeroview shut down")

    from xeroview import __version__

    app = FastAPI(title="xeroview", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.provider = provider if provider is not None else OAuth2Provider(config)
    app.state.repository = repository if repository is not None else InMemorySessionRepository()
    app.state.states = states if states is not None else StateStore()

    from xeroview.web.routes import router

    app.include_router(router)
    app.add_exception_handler(XeroViewError, handle_xeroview_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
