"""
Remote chat backend - resolves a model id to a provider endpoint and calls it.
"""

import logging
from typing import Callable, List, Optional

from ..config import Settings, get_default_base_url
from ..models import AppSettings, provider_key
from .base import ChatBackend, ChatReply
from .chat_client import ChatCompletionClient
from .errors import InvalidModelError, InvalidResponseError, UnknownProviderError
from .schemas import ChatAPIMessage, ChatRequest

logger = logging.getLogger(__name__)


def resolve_base_url(
    app_settings: AppSettings,
    provider: str,
    config: Optional[Settings] = None,
) -> Optional[str]:
    """
    User endpoint override first, then the configured default.

    Returns None for a provider with neither, so its key never goes to
    another provider's host.
    """
    key = provider_key(provider)
    return app_settings.custom_endpoints.get(key) or get_default_base_url(key, config)


class RemoteChatBackend(ChatBackend):
    """
    Calls the provider that owns the requested model.

    Settings are read through a getter on every call so key/endpoint edits
    take effect without rebuilding the backend.
    """

    def __init__(
        self,
        client: ChatCompletionClient,
        get_settings: Callable[[], AppSettings],
        config: Optional[Settings] = None,
    ):
        self.client = client
        self._get_settings = get_settings
        self._config = config

    def resolve_base_url(self, provider: str) -> Optional[str]:
        return resolve_base_url(self._get_settings(), provider, self._config)

    async def generate(
        self,
        model_id: str,
        messages: List[ChatAPIMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatReply:
        app_settings = self._get_settings()
        model = app_settings.find_model(model_id)
        if model is None:
            raise InvalidModelError(model_id)

        base_url = self.resolve_base_url(model.provider)
        if base_url is None:
            raise UnknownProviderError(model.provider)
        logger.debug(
            f"Remote chat call: model={model.name}, provider={model.provider}, "
            f"{len(messages)} messages"
        )

        response = await self.client.send_chat_request(
            base_url,
            app_settings.api_key_for(model.provider),
            ChatRequest(
                model=model.name,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            ),
        )

        if not response.choices or not response.choices[0].message.content:
            raise InvalidResponseError()

        return ChatReply(
            content=response.choices[0].message.content,
            model=response.model,
            usage=response.usage.model_dump() if response.usage else {},
        )
