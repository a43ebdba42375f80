import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ai_client import GEMINI_URL, GeminiClient, extract_text
from errors import AINotConfiguredError, AIServiceError

REPLY = {"candidates": [{"content": {"parts": [{"text": "A lovely flat."}]}}]}


def gemini_returning(mock_client_cls, response=None, error=None):
    http = mock_client_cls.return_value.__aenter__.return_value
    http.post = AsyncMock(return_value=response, side_effect=error)
    return http


@patch("ai_client.httpx.AsyncClient")
def test_generate_returns_first_part(mock_client_cls):
    http = gemini_returning(mock_client_cls, httpx.Response(200, json=REPLY))
    ai = GeminiClient(api_key="key-123", model="gemini-test")

    text = asyncio.run(ai.generate("Be brief.", "Keywords: garden"))

    assert text == "A lovely flat."
    url = http.post.call_args[0][0]
    assert url == GEMINI_URL.format(model="gemini-test")
    assert http.post.call_args[1]["params"] == {"key": "key-123"}
    assert http.post.call_args[1]["json"] == {
        "contents": [{"parts": [{"text": "Keywords: garden"}]}],
        "systemInstruction": {"parts": [{"text": "Be brief."}]},
    }
    mock_client_cls.assert_called_once_with(timeout=None)


def test_generate_without_key():
    ai = GeminiClient(api_key=None, model="gemini-test")

    assert not ai.configured
    with pytest.raises(AINotConfiguredError):
        asyncio.run(ai.generate("system", "query"))


@patch("ai_client.httpx.AsyncClient")
def test_generate_error_status(mock_client_cls):
    gemini_returning(mock_client_cls, httpx.Response(503, text="overloaded"))
    ai = GeminiClient(api_key="key-123", model="gemini-test")

    with pytest.raises(AIServiceError, match="503"):
        asyncio.run(ai.generate("system", "query"))


@patch("ai_client.httpx.AsyncClient")
def test_generate_empty_reply(mock_client_cls):
    gemini_returning(mock_client_cls, httpx.Response(200, json={"candidates": []}))
    ai = GeminiClient(api_key="key-123", model="gemini-test")

    with pytest.raises(AIServiceError):
        asyncio.run(ai.generate("system", "query"))


@patch("ai_client.httpx.AsyncClient")
def test_generate_non_json_body(mock_client_cls):
    gemini_returning(mock_client_cls, httpx.Response(200, text="<html>busy</html>"))
    ai = GeminiClient(api_key="key-123", model="gemini-test")

    with pytest.raises(AIServiceError, match="non-JSON"):
        asyncio.run(ai.generate("system", "query"))


@patch("ai_client.httpx.AsyncClient")
def test_generate_transport_error(mock_client_cls):
    gemini_returning(mock_client_cls, error=httpx.ConnectError("connection refused"))
    ai = GeminiClient(api_key="key-123", model="gemini-test", timeout=5.0)

    with pytest.raises(AIServiceError):
        asyncio.run(ai.generate("system", "query"))
    mock_client_cls.assert_called_once_with(timeout=5.0)


@pytest.mark.parametrize("result", [
    None,
    {},
    {"candidates": [{}]},
    {"candidates": [{"content": {"parts": []}}]},
    {"candidates": [{"content": {"parts": ["plain string"]}}]},
    {"candidates": [{"content": {"parts": {"text": "x"}}}]},
    {"candidates": ["oops"]},
])
def test_extract_text_handles_missing_parts(result):
    assert extract_text(result) is None
