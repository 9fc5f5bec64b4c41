"""
In-memory conversation sessions for the HTTP API.

Each session owns one ``ShopAgent`` and a lock so that turns for the same
session run one after another. Sessions live for the process lifetime.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from ..agent import ShopAgent
from ..models import StoreSnapshot
from ..store_loader import load_store_snapshot

logger = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    agent: ShopAgent
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionManager:
    """Creates, looks up and discards sessions."""

    def __init__(self, store: Optional[StoreSnapshot] = None):
        self._store = store
        self._sessions: dict[str, Session] = {}

    @property
    def store(self) -> StoreSnapshot:
        """Shared starting snapshot for new sessions, loaded on first use."""
        if self._store is None:
            self._store = load_store_snapshot()
        return self._store

    def create(self, provider: Optional[str] = None, api_key: Optional[str] = None) -> Session:
        session_id = f"sess-{uuid.uuid4().hex[:12]}"
        agent = ShopAgent(credential=api_key, provider=provider, store=self.store)
        session = Session(session_id=session_id, agent=agent)
        self._sessions[session_id] = session
        logger.info("[%s] Session created (%s)", session_id, agent.provider.value)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def delete(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.agent.close()
        logger.info("[%s] Session deleted", session_id)
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.delete(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """FastAPI dependency returning the process-wide session manager."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
