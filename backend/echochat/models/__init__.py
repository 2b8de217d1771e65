"""Models module."""

from .message import (
    ChatMessage, MessageSender, MessageStatus, MessageType, Attachment, TRANSIENT_STATUSES,
)
from .session import ChatSession, SessionSummary, SessionList, DEFAULT_SESSION_TITLE
from .settings import (
    AppSettings, ModelConfig, FetchedModel, DEFAULT_MODELS, DEFAULT_MODEL_ID, FONT_SIZE_RANGE,
    default_model, provider_key, provider_display_name, PROVIDER_DISPLAY_NAMES,
)

__all__ = [
    'ChatMessage', 'MessageSender', 'MessageStatus', 'MessageType', 'Attachment', 'TRANSIENT_STATUSES',
    'ChatSession', 'SessionSummary', 'SessionList', 'DEFAULT_SESSION_TITLE',
    'AppSettings', 'ModelConfig', 'FetchedModel', 'DEFAULT_MODELS', 'DEFAULT_MODEL_ID', 'FONT_SIZE_RANGE',
    'default_model', 'provider_key', 'provider_display_name', 'PROVIDER_DISPLAY_NAMES',
]
