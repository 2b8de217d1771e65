"""
API dependencies - access to the services built at startup.
"""

from dataclasses import dataclass
from typing import Tuple

from fastapi import HTTPException, Request, status

from ..config import Settings
from ..core import AppState, ChatOrchestrator, SessionLifecycleManager
from ..llm import ChatCompletionClient
from ..models import ChatMessage, ChatSession
from ..storage import SessionStore, SettingsStorage


@dataclass
class ChatServices:
    """Everything the routes need, created once in the app lifespan."""
    config: Settings
    state: AppState
    store: SessionStore
    settings_storage: SettingsStorage
    lifecycle: SessionLifecycleManager
    orchestrator: ChatOrchestrator
    chat_client: ChatCompletionClient


def get_services(request: Request) -> ChatServices:
    return request.app.state.services


def require_session(services: ChatServices, session_id: str) -> ChatSession:
    session = services.lifecycle.find_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    return session


def require_message(services: ChatServices, message_id: str) -> Tuple[ChatSession, ChatMessage]:
    session, message = services.lifecycle.find_message(message_id)
    if session is None or message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Message {message_id} not found"
        )
    return session, message
