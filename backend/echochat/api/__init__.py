"""API module."""

from .chat import router as chat_router
from .sessions import router as sessions_router
from .settings import router as settings_router

__all__ = ['chat_router', 'sessions_router', 'settings_router']
