"""Concurrency-safe registry of open tab sessions."""
import asyncio
import logging
from typing import Any

from ..core.errors import NotFoundError
from .models import TabSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps session ids to the pages they own.

    The lock only guards the dict itself. It is released before any driver
    call, so a slow page never blocks lookups for other tabs.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, TabSession] = {}
        self._lock = asyncio.Lock()

    async def insert(self, session: TabSession) -> None:
        """Register a freshly opened session.

        Raises:
            ValueError: If the id is already registered.
        """
        async with self._lock:
            if session.id in self._sessions:
                raise ValueError(f"tab_id {session.id} already registered")
            self._sessions[session.id] = session
        logger.debug(f"Registered tab {session.id}")

    async def lookup(self, tab_id: str) -> Any:
        """Get the page for a tab without removing it.

        Raises:
            NotFoundError: If no live tab has this id.
        """
        async with self._lock:
            session = self._sessions.get(tab_id)
        if session is None:
            raise NotFoundError(f"tab_id {tab_id}")
        return session.page

    async def remove(self, tab_id: str) -> TabSession:
        """Atomically take a session out of the registry.

        Only the first caller for a given id gets the session.

        Raises:
            NotFoundError: If no live tab has this id.
        """
        async with self._lock:
            session = self._sessions.pop(tab_id, None)
        if session is None:
            raise NotFoundError(f"tab_id {tab_id}")
        logger.debug(f"Removed tab {tab_id}")
        return session

    async def ids(self) -> list[str]:
        """Snapshot of live tab ids."""
        async with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._sessions
