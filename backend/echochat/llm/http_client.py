"""
Generic HTTP client for provider APIs.

One request per call: no retries, no caching. Every failure is raised as a
``ProviderError`` subclass so callers can translate it without looking at httpx.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..core.logging_config import filter_sensitive_data, truncate_large_data
from .errors import (
    DecodeError,
    HTTPStatusError,
    InvalidURLError,
    NoDataError,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class ProviderClient:
    """
    Thin async wrapper around httpx.

    ``request_timeout`` bounds each phase (connect/read/write/pool),
    ``resource_timeout`` bounds the whole exchange.
    """

    def __init__(
        self,
        request_timeout: float = 30.0,
        resource_timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.request_timeout = request_timeout
        self.resource_timeout = resource_timeout
        self._transport = transport

    @staticmethod
    def _validate_url(url: str) -> httpx.URL:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidURLError(url) from e
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise InvalidURLError(url)
        return parsed

    async def request(
        self,
        url: str,
        response_model: Type[T],
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> T:
        """
        Perform one HTTP round trip and decode the JSON body.

        Args:
            url: Absolute http(s) URL
            response_model: Pydantic model the response body must match
            method: HTTP method
            headers: Request headers
            body: Raw request body

        Returns:
            The decoded response model

        Raises:
            InvalidURLError, NoDataError, DecodeError, HTTPStatusError, TransportError
        """
        self._validate_url(url)
        start_time = time.time()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Provider request starting: {method} {url}",
                extra={"extra_fields": {
                    "method": method,
                    "url": url,
                    "headers": filter_sensitive_data(dict(headers or {})),
                }}
            )

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.request_timeout),
                transport=self._transport,
            ) as client:
                response = await asyncio.wait_for(
                    client.request(method, url, headers=headers, content=body),
                    timeout=self.resource_timeout,
                )
        except asyncio.TimeoutError as e:
            self._log_failure(method, url, start_time, "resource timeout exceeded")
            raise TransportError(f"no complete response within {self.resource_timeout}s") from e
        except httpx.InvalidURL as e:
            raise InvalidURLError(url) from e
        except httpx.HTTPError as e:
            self._log_failure(method, url, start_time, str(e) or type(e).__name__)
            raise TransportError(str(e) or type(e).__name__) from e

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            error_body = response.text or None
            logger.warning(
                f"Provider request failed: {method} {url} - {response.status_code}",
                extra={"extra_fields": {
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                    "response_body": truncate_large_data(error_body or "", max_length=500),
                }}
            )
            raise HTTPStatusError(response.status_code, error_body)

        if not response.content:
            raise NoDataError()

        try:
            decoded = response_model.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                f"Provider response did not match {response_model.__name__}",
                extra={"extra_fields": {
                    "url": url,
                    "response_body": truncate_large_data(response.text, max_length=500),
                }}
            )
            raise DecodeError(str(e)) from e

        logger.info(
            f"Provider request completed: {method} {url} - {response.status_code}",
            extra={"extra_fields": {
                "method": method,
                "url": url,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            }}
        )
        return decoded

    async def post_json(
        self,
        url: str,
        json_body: BaseModel,
        response_model: Type[T],
        headers: Optional[Dict[str, str]] = None,
    ) -> T:
        """POST a pydantic model as JSON (null fields omitted)."""
        try:
            body = json_body.model_dump_json(exclude_none=True).encode("utf-8")
        except (ValueError, TypeError) as e:
            raise DecodeError(f"could not encode request body: {e}") from e

        json_headers: Dict[str, Any] = dict(headers or {})
        json_headers["Content-Type"] = "application/json"

        return await self.request(
            url,
            response_model,
            method="POST",
            headers=json_headers,
            body=body,
        )

    @staticmethod
    def _log_failure(method: str, url: str, start_time: float, error: str) -> None:
        logger.warning(
            f"Provider request failed: {method} {url} - {error}",
            extra={"extra_fields": {
                "method": method,
                "url": url,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "error": error,
            }}
        )
