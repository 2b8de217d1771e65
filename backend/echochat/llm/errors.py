"""
Error taxonomy for provider calls.

Two layers:
- ``ProviderError``: transport-level failures raised by ProviderClient
- ``ChatAPIError``: semantic failures raised by ChatCompletionClient, mostly
  translated from HTTP status codes

``str(error)`` is always a message fit to show to the user.
"""

from typing import Optional


class ProviderError(Exception):
    """Base class for transport-level failures."""


class InvalidURLError(ProviderError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}")


class NoDataError(ProviderError):
    def __init__(self):
        super().__init__("The server returned no data")


class DecodeError(ProviderError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to decode data: {detail}")


class HTTPStatusError(ProviderError):
    def __init__(self, status_code: int, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error {status_code}: {body or 'unknown error'}")


class TransportError(ProviderError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Request failed: {detail}")


class ChatAPIError(Exception):
    """Base class for semantic API failures."""


class MissingAPIKeyError(ChatAPIError):
    def __init__(self):
        super().__init__("Missing API key")


class InvalidModelError(ChatAPIError):
    def __init__(self, model_id: Optional[str] = None):
        self.model_id = model_id
        super().__init__(f"Invalid model: {model_id}" if model_id else "Invalid model")


class UnknownProviderError(ChatAPIError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"No endpoint configured for provider: {provider}")


class InvalidResponseError(ChatAPIError):
    def __init__(self):
        super().__init__("Invalid response format")


class QuotaExceededError(ChatAPIError):
    def __init__(self):
        super().__init__("API quota exceeded")


class RateLimitedError(ChatAPIError):
    def __init__(self):
        super().__init__("Too many requests, please try again later")


class UnauthorizedError(ChatAPIError):
    def __init__(self):
        super().__init__("API key is invalid or lacks permission")


class ServerError(ChatAPIError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Server error: {detail}")


def translate_status_error(error: HTTPStatusError) -> Exception:
    """
    Map an HTTP status failure to the semantic taxonomy.

    Statuses without a semantic meaning come back unchanged.
    """
    code = error.status_code
    if code == 401:
        return UnauthorizedError()
    if code == 429:
        return RateLimitedError()
    if code == 403:
        return QuotaExceededError()
    if code >= 500:
        return ServerError(error.body or "internal server error")
    return error
