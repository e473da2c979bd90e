"""
Session repository — one OAuth2 token per local user.

The service runs for a single local user (the nil UUID), but the
repository is keyed so a multi-user store can slot in behind the same
interface.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass

from xeroview.auth.tokens import TokenData
from xeroview.errors import NotFoundError

logger = logging.getLogger("xeroview.auth.session")

NIL_USER = uuid.UUID(int=0)


class SessionRepository(ABC):
    """Abstract token store.

    Implementations must be safe to call from concurrent requests.
    ``lock(user_id)`` serialises refresh-then-persist for one user.
    """

    def __init__(self) -> None:
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def create_session(self, user_id: uuid.UUID, token: TokenData) -> None:
        """Store *token* for *user_id*, replacing any existing one."""
        ...

    @abstractmethod
    def get_session(self, user_id: uuid.UUID) -> TokenData | None:
        """Return the stored token, or None when there is no session."""
        ...

    @abstractmethod
    def update_session(self, user_id: uuid.UUID, token: TokenData) -> None:
        """Replace the stored token.

        Raises:
            NotFoundError: If no session exists for *user_id*.
        """
        ...

    @abstractmethod
    def delete_session(self, user_id: uuid.UUID) -> bool:
        """Remove the session. Returns True if one existed."""
        ...

    def lock(self, user_id: uuid.UUID) -> asyncio.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = asyncio.Lock()
            return lock


class InMemorySessionRepository(SessionRepository):
    """Process-local token store. Nothing survives a restart."""

    def __init__(self) -> None:
        super().__init__()
        self._tokens: dict[uuid.UUID, TokenData] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def create_session(self, user_id: uuid.UUID, token: TokenData) -> None:
        with self._guard:
            self._tokens[user_id] = token
        logger.info("Created session for user %s", user_id)

    def get_session(self, user_id: uuid.UUID) -> TokenData | None:
        with self._guard:
            return self._tokens.get(user_id)

    def update_session(self, user_id: uuid.UUID, token: TokenData) -> None:
        with self._guard:
            if user_id not in self._tokens:
                raise NotFoundError(f"No session for user {user_id}")
            self._tokens[user_id] = token
        logger.debug("Updated session for user %s", user_id)

    def delete_session(self, user_id: uuid.UUID) -> bool:
        with self._guard:
            existed = self._tokens.pop(user_id, None) is not None
        if existed:
            logger.info("Deleted session for user %s", user_id)
        return existed


@dataclass
class Session:
    """A token bound to a user and, optionally, one tenant."""

    token: TokenData
    repository: SessionRepository
    user_id: uuid.UUID = NIL_USER
    tenant_id: uuid.UUID | str | None = None

    def for_tenant(self, tenant_id: uuid.UUID | str) -> Session:
        return Session(
            token=self.token,
            repository=self.repository,
            user_id=self.user_id,
            tenant_id=tenant_id,
        )
