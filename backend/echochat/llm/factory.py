"""
Chat Backend Factory - Creates the configured backend instance.
"""

from typing import Callable, Optional

from ..config import Settings
from ..models import AppSettings
from .base import ChatBackend
from .chat_client import ChatCompletionClient
from .http_client import ProviderClient
from .remote_backend import RemoteChatBackend
from .simulated_backend import SimulatedChatBackend


def create_chat_backend(
    mode: str,
    get_settings: Callable[[], AppSettings],
    config: Optional[Settings] = None,
    client: Optional[ChatCompletionClient] = None,
    delay_seconds: Optional[float] = None,
) -> ChatBackend:
    """
    Create a chat backend based on configuration.

    Args:
        mode: "remote" or "simulated"
        get_settings: Returns the live AppSettings (keys, endpoints, fetched models)
        config: Process configuration (timeouts, default endpoints)
        client: Pre-built ChatCompletionClient (built from config if omitted)
        delay_seconds: Simulated reply delay (config value if omitted)

    Returns:
        ChatBackend instance
    """
    if mode == "simulated":
        if delay_seconds is None:
            delay_seconds = config.simulated_delay_seconds if config else 2.0
        return SimulatedChatBackend(delay_seconds=delay_seconds)

    elif mode == "remote":
        if client is None:
            http_client = ProviderClient(
                request_timeout=config.http_request_timeout if config else 30.0,
                resource_timeout=config.http_resource_timeout if config else 120.0,
            )
            client = ChatCompletionClient(http_client)
        return RemoteChatBackend(client, get_settings, config)

    else:
        raise ValueError(f"Unsupported chat backend: {mode}")
