"""
Request logging middleware.

Pure ASGI (not BaseHTTPMiddleware) so pending chat replies started by a
request are not tied to the response lifecycle.

Logs method, path, status and duration for every request; bodies are only
logged at DEBUG, with sensitive keys masked.
"""

import json
import logging
import time
from typing import List, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_LOGGED_BODY = 2000


def _sanitize_body(data: bytes) -> str:
    """Mask sensitive fields if the payload is JSON, otherwise log plain text."""
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_LOGGED_BODY)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=MAX_LOGGED_BODY,
    )


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log API requests."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[List[str]] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging (e.g. ["/health"])
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        debug_bodies = logger.isEnabledFor(logging.DEBUG)

        request_chunks: List[bytes] = []
        response_chunks: List[bytes] = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if debug_bodies and message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif debug_bodies and message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        logger.log(
            log_level,
            f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={"extra_fields": {
                "method": method,
                "path": path,
                "query_string": scope.get("query_string", b"").decode("utf-8", errors="ignore"),
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            }}
        )

        if debug_bodies:
            request_body = b"".join(request_chunks)
            response_body = b"".join(response_chunks)
            logger.debug(
                f"Bodies for {method} {path}",
                extra={"extra_fields": {
                    "request_body": _sanitize_body(request_body) if request_body else None,
                    "response_body": _sanitize_body(response_body) if response_body else None,
                }}
            )
