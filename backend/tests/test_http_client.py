"""
Unit tests for ProviderClient.
Covers URL validation, status/decoding failures and transport errors.
"""

import asyncio
import json
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import BaseModel

from echochat.llm.errors import (
    DecodeError,
    HTTPStatusError,
    InvalidURLError,
    NoDataError,
    ProviderError,
    TransportError,
)
from echochat.llm.http_client import ProviderClient


class Echo(BaseModel):
    value: str
    extra: Optional[str] = None


def make_client(handler, **kwargs) -> ProviderClient:
    return ProviderClient(transport=httpx.MockTransport(handler), **kwargs)


class TestURLValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/file", "http://"])
    async def test_rejects_invalid_urls(self, url):
        client = make_client(lambda request: httpx.Response(200, json={"value": "x"}))
        with pytest.raises(InvalidURLError):
            await client.request(url, Echo)


class TestRequest:

    @pytest.mark.asyncio
    async def test_decodes_success_body(self):
        client = make_client(lambda request: httpx.Response(200, json={"value": "hello"}))
        result = await client.request("https://api.example.com/echo", Echo)
        assert result == Echo(value="hello")

    @pytest.mark.asyncio
    async def test_status_error_keeps_code_and_body(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(HTTPStatusError) as exc_info:
            await client.request("https://api.example.com/echo", Echo)
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    @pytest.mark.asyncio
    async def test_status_error_without_body(self):
        client = make_client(lambda request: httpx.Response(404))
        with pytest.raises(HTTPStatusError) as exc_info:
            await client.request("https://api.example.com/echo", Echo)
        assert exc_info.value.status_code == 404
        assert exc_info.value.body is None

    @pytest.mark.asyncio
    async def test_empty_body_is_no_data(self):
        client = make_client(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(NoDataError):
            await client.request("https://api.example.com/echo", Echo)

    @pytest.mark.asyncio
    async def test_malformed_body_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(DecodeError):
            await client.request("https://api.example.com/echo", Echo)

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"other": 1}))
        with pytest.raises(DecodeError):
            await client.request("https://api.example.com/echo", Echo)

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = make_client(handler)
        with pytest.raises(TransportError) as exc_info:
            await client.request("https://api.example.com/echo", Echo)
        assert "connection refused" in str(exc_info.value)
        assert isinstance(exc_info.value, ProviderError)

    @pytest.mark.asyncio
    async def test_resource_timeout_is_transport_error(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={"value": "late"})

        client = make_client(handler, resource_timeout=0.05)
        with pytest.raises(TransportError):
            await client.request("https://api.example.com/echo", Echo)


class TestPostJson:

    @pytest.mark.asyncio
    async def test_sends_json_without_null_fields(self):
        captured = {}

        def handler(request: httpx.Request):
            captured["method"] = request.method
            captured["content_type"] = request.headers["content-type"]
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"value": "ok"})

        client = make_client(handler)
        result = await client.post_json(
            "https://api.example.com/echo",
            Echo(value="ping"),
            Echo,
            headers={"Authorization": "Bearer sk-test"},
        )

        assert result.value == "ok"
        assert captured["method"] == "POST"
        assert captured["content_type"] == "application/json"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"] == {"value": "ping"}

    @pytest.mark.asyncio
    async def test_with_patched_async_client(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.content = b'{"value": "patched"}'
        mock_response.text = '{"value": "patched"}'

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_instance.request.return_value = mock_response
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_client.return_value = mock_instance

            result = await ProviderClient().post_json(
                "https://api.example.com/echo",
                Echo(value="ping"),
                Echo,
            )

            assert result.value == "patched"
            args, kwargs = mock_instance.request.call_args
            assert args == ("POST", "https://api.example.com/echo")
            assert json.loads(kwargs["content"]) == {"value": "ping"}
