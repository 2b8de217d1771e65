"""Core module - message lifecycle, session lifecycle and chat orchestration."""

from .app_state import AppState
from .message_state import MessageStateMachine, InvalidTransitionError
from .session_manager import SessionLifecycleManager
from .chat_orchestrator import ChatOrchestrator, ChatTurn, ReplyOutcome
from .history import SessionGroup, group_sessions_by_date, search_sessions

__all__ = [
    'AppState',
    'MessageStateMachine',
    'InvalidTransitionError',
    'SessionLifecycleManager',
    'ChatOrchestrator',
    'ChatTurn',
    'ReplyOutcome',
    'SessionGroup',
    'group_sessions_by_date',
    'search_sessions',
]
