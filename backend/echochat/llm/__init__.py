"""LLM module - provider HTTP client, chat-completions client and chat backends."""

from .base import ChatBackend, ChatReply
from .chat_client import ChatCompletionClient, generate_provider, is_chat_model, looks_like_api_key
from .http_client import ProviderClient
from .remote_backend import RemoteChatBackend
from .simulated_backend import SimulatedChatBackend
from .factory import create_chat_backend

__all__ = [
    'ChatBackend',
    'ChatReply',
    'ChatCompletionClient',
    'ProviderClient',
    'RemoteChatBackend',
    'SimulatedChatBackend',
    'create_chat_backend',
    'generate_provider',
    'is_chat_model',
    'looks_like_api_key',
]
