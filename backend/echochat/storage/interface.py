"""
Session Store Interface - The persistence capability the core consumes.

The core never talks to a storage engine directly: it inserts and deletes
sessions through this interface and calls ``save()`` after every structural
mutation. Session objects are live: mutating a stored session (or one of its
messages) and calling ``save()`` persists the change.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import ChatSession


class StorageError(Exception):
    """Persistence failed. The in-memory state is still valid."""


class SessionStore(ABC):
    """
    Abstract session store. Future implementations can include SQL or
    key-value backends.
    """

    @abstractmethod
    async def load(self) -> None:
        """
        Hydrate the store from its backing medium.

        Raises:
            StorageError: if persisted data exists but cannot be read
        """
        pass

    @abstractmethod
    async def insert(self, session: ChatSession) -> None:
        """Track a new session (persisted on the next save)."""
        pass

    @abstractmethod
    async def delete(self, session: ChatSession) -> None:
        """
        Remove a session together with all of its messages.

        Session and messages go in one operation: no save can observe a
        session without its messages or orphaned messages without a session.
        """
        pass

    @abstractmethod
    async def fetch_all(self) -> List[ChatSession]:
        """All sessions, most recently updated first."""
        pass

    @abstractmethod
    async def save(self) -> None:
        """
        Persist the current object graph.

        Raises:
            StorageError: if the write failed
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Forget every session and message (persisted on the next save)."""
        pass

    @abstractmethod
    async def export_data(self) -> str:
        """JSON document with every session and message."""
        pass
