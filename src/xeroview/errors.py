"""
Error taxonomy shared by the auth, connector and web layers.

Library code raises these; only the web front controller turns them
into HTTP responses.
"""

from __future__ import annotations


class XeroViewError(Exception):
    """Base class for all xeroview errors."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthError(XeroViewError):
    """Authorization, code exchange or token refresh failed."""

    status_code = 401


class StateMismatchError(AuthError):
    """The OAuth2 ``state`` echoed back was never issued (or already used)."""

    status_code = 403


class TenantConnectionError(XeroViewError):
    """Listing the tenants connected to a token failed."""

    status_code = 502


class FetchError(XeroViewError):
    """A resource request or its decoding failed."""

    status_code = 502

    def __init__(self, message: str, *, remote_status: int | None = None) -> None:
        super().__init__(message)
        self.remote_status = remote_status


class NotFoundError(XeroViewError):
    """No session is stored for the given user."""

    status_code = 404
