"""
xeroview authentication and token management.

Provides the Xero OAuth2 flow, the session repository, and
authenticated httpx clients that refresh tokens on demand.
"""

from xeroview.auth.oauth2 import OAuth2Provider, SessionAuth, StateStore, new_state
from xeroview.auth.session import (
    NIL_USER,
    InMemorySessionRepository,
    Session,
    SessionRepository,
)
from xeroview.auth.tokens import TokenData

__all__ = [
    "NIL_USER",
    "InMemorySessionRepository",
    "OAuth2Provider",
    "Session",
    "SessionAuth",
    "SessionRepository",
    "StateStore",
    "TokenData",
    "new_state",
]
