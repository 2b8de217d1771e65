"""
Chat-completions client for OpenAI-compatible provider endpoints.

Translates transport failures into the semantic ChatAPIError taxonomy.
Only ``test_api_key`` swallows errors: it is a diagnostic probe.
"""

import logging
import time
from typing import Dict, List, Optional

from .errors import (
    HTTPStatusError,
    InvalidResponseError,
    MissingAPIKeyError,
    translate_status_error,
)
from .http_client import ProviderClient
from .schemas import (
    AIModel,
    APITestResult,
    ChatAPIMessage,
    ChatRequest,
    ChatResponse,
    ChatRole,
    ModelsResponse,
)

logger = logging.getLogger(__name__)

CHAT_MODEL_MARKERS = ("gpt", "gemini", "claude")
NON_CHAT_MODEL_MARKERS = ("embedding", "whisper", "tts", "dall-e", "audio", "image")


def join_url(base_url: str, path: str) -> str:
    return base_url + path if base_url.endswith("/") else f"{base_url}/{path}"


def is_chat_model(model_id: str) -> bool:
    """Whether a model id looks like a chat model rather than embeddings/audio/images."""
    lowered = model_id.lower()
    if any(marker in lowered for marker in NON_CHAT_MODEL_MARKERS):
        return False
    return any(marker in lowered for marker in CHAT_MODEL_MARKERS)


def generate_provider(model_id: str) -> str:
    """Provider display name derived from a model id."""
    lowered = model_id.lower()
    if "gpt" in lowered:
        return "OpenAI"
    if "gemini" in lowered:
        return "Google"
    if "claude" in lowered:
        return "Anthropic"
    return "Unknown"


def looks_like_api_key(key: str, provider: str) -> bool:
    """Cheap format check for an API key, before spending a network call on it."""
    trimmed = key.strip()
    provider = provider.lower()
    if provider == "openai":
        return trimmed.startswith("sk-") and len(trimmed) > 20
    if provider == "anthropic":
        return trimmed.startswith("sk-ant-") or trimmed.startswith("claude-")
    if provider == "google":
        return trimmed.startswith("AIzaSy") and len(trimmed) > 30
    return bool(trimmed)


class ChatCompletionClient:
    """Provider-URL-addressed, bearer-authenticated chat API client."""

    def __init__(self, http_client: Optional[ProviderClient] = None):
        self.http_client = http_client or ProviderClient()

    @staticmethod
    def _get_headers(api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def send_chat_request(
        self,
        base_url: str,
        api_key: str,
        request: ChatRequest,
    ) -> ChatResponse:
        """
        Send a chat completion request.

        Args:
            base_url: Provider base URL (e.g. https://api.openai.com/v1)
            api_key: Bearer token; must be non-empty
            request: Chat request body

        Returns:
            ChatResponse as returned by the provider

        Raises:
            MissingAPIKeyError: before any network I/O when api_key is empty
            UnauthorizedError, RateLimitedError, QuotaExceededError, ServerError:
                translated from 401/429/403/5xx
            ProviderError: any other transport or status failure
        """
        if not api_key:
            raise MissingAPIKeyError()

        url = join_url(base_url, "chat/completions")
        start_time = time.time()

        try:
            response = await self.http_client.post_json(
                url,
                request,
                ChatResponse,
                headers=self._get_headers(api_key),
            )
        except HTTPStatusError as e:
            raise translate_status_error(e) from e

        usage = response.usage
        logger.info(
            "Chat completion finished",
            extra={"extra_fields": {
                "model": response.model,
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
                "total_tokens": usage.total_tokens if usage else 0,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            }}
        )
        return response

    async def send_simple_message(
        self,
        base_url: str,
        api_key: str,
        model: str,
        message: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send one user message (optionally behind a system prompt) and return the reply text."""
        messages: List[ChatAPIMessage] = []
        if system_prompt:
            messages.append(ChatAPIMessage(role=ChatRole.SYSTEM, content=system_prompt))
        messages.append(ChatAPIMessage(role=ChatRole.USER, content=message))

        response = await self.send_chat_request(
            base_url,
            api_key,
            ChatRequest(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            ),
        )

        if not response.choices or not response.choices[0].message.content:
            raise InvalidResponseError()
        return response.choices[0].message.content

    async def fetch_models(self, base_url: str, api_key: str) -> List[AIModel]:
        """
        List the provider's chat-capable models, sorted by id.

        Same key precheck and status translation as send_chat_request.
        """
        if not api_key:
            raise MissingAPIKeyError()

        url = join_url(base_url, "models")
        try:
            response = await self.http_client.request(
                url,
                ModelsResponse,
                method="GET",
                headers=self._get_headers(api_key),
            )
        except HTTPStatusError as e:
            raise translate_status_error(e) from e

        chat_models = [model for model in response.data if is_chat_model(model.id)]
        logger.info(
            f"Fetched {len(response.data)} models, {len(chat_models)} chat-capable",
            extra={"extra_fields": {"url": url}}
        )
        return sorted(chat_models, key=lambda model: model.id)

    async def test_api_key(self, base_url: str, api_key: str) -> APITestResult:
        """Probe an API key by listing models. Never raises."""
        try:
            models = await self.fetch_models(base_url, api_key)
        except Exception as e:
            logger.info(f"API key test failed: {e}")
            return APITestResult.failure(str(e))
        return APITestResult.success(models)
