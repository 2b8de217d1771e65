"""
In-memory session store. Also the base of the file-backed store.
"""

import json
from typing import Dict, List

from ..models import ChatSession
from .interface import SessionStore

EXPORT_FORMAT_VERSION = 1


class InMemorySessionStore(SessionStore):
    """Keeps the live object graph in a dict keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}
        self._loaded = False

    async def load(self) -> None:
        self._loaded = True

    async def insert(self, session: ChatSession) -> None:
        self._sessions[session.id] = session

    async def delete(self, session: ChatSession) -> None:
        # Messages are owned by the session object, so they leave with it
        self._sessions.pop(session.id, None)

    async def fetch_all(self) -> List[ChatSession]:
        if not self._loaded:
            await self.load()
        return sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)

    async def clear(self) -> None:
        self._sessions = {}

    async def save(self) -> None:
        pass

    def _snapshot(self) -> dict:
        return {
            "version": EXPORT_FORMAT_VERSION,
            "sessions": [
                session.model_dump(mode="json")
                for session in sorted(self._sessions.values(), key=lambda s: s.updated_at, reverse=True)
            ],
        }

    async def export_data(self) -> str:
        return json.dumps(self._snapshot(), indent=2, ensure_ascii=False)

    def __contains__(self, session: ChatSession) -> bool:
        return session.id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
