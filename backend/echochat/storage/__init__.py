"""Storage module - session store interface and implementations, settings persistence."""

from .interface import SessionStore, StorageError
from .memory_storage import InMemorySessionStore
from .local_storage import JsonFileSessionStore
from .settings_storage import SettingsStorage

__all__ = ['SessionStore', 'StorageError', 'InMemorySessionStore', 'JsonFileSessionStore', 'SettingsStorage']
