from __future__ import annotations

import json

import httpx
import pytest

from config.settings import settings
from core import llm_client
from util.errors import MalformedModelOutput, UpstreamUnavailable


@pytest.fixture()
def api_key(monkeypatch) -> str:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "test-key")
    return "test-key"


def _reply(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


@pytest.mark.asyncio
async def test_complete_without_key_is_unavailable(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")

    with pytest.raises(UpstreamUnavailable):
        await llm_client.complete("sys", "hi")


@pytest.mark.asyncio
async def test_complete_prefills_brace_in_json_mode(api_key: str) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply('"intent": "chat"}'))

    text = await llm_client.complete(
        "sys", "hello", transport=httpx.MockTransport(handler)
    )

    assert text == '{"intent": "chat"}'
    assert seen["headers"]["x-api-key"] == api_key
    assert seen["body"]["system"] == "sys"
    assert seen["body"]["messages"][-1] == {"role": "assistant", "content": "{"}


@pytest.mark.asyncio
async def test_complete_plain_text_mode(api_key: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert len(body["messages"]) == 1
        return httpx.Response(200, json=_reply("Hi!"))

    text = await llm_client.complete(
        "sys", "hello", json_mode=False, transport=httpx.MockTransport(handler)
    )
    assert text == "Hi!"


@pytest.mark.asyncio
async def test_complete_http_error_is_unavailable(api_key: str) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(529, json={"error": "overloaded"}))

    with pytest.raises(UpstreamUnavailable, match="529"):
        await llm_client.complete("sys", "hello", transport=transport)


@pytest.mark.asyncio
async def test_complete_transport_error_is_unavailable(api_key: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable):
        await llm_client.complete("sys", "hello", transport=httpx.MockTransport(handler))


def test_parse_json_object_tolerates_fences_and_trailing_text() -> None:
    assert llm_client.parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    assert llm_client.parse_json_object('{"a": 1}\nHope that helps!') == {"a": 1}


@pytest.mark.parametrize("raw", ["", "no json here", "[1, 2]", '{"a": '])
def test_parse_json_object_rejects_non_objects(raw: str) -> None:
    with pytest.raises(MalformedModelOutput):
        llm_client.parse_json_object(raw)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"[1, 2]", b'"just text"', b"<html>bad gateway</html>"])
async def test_complete_non_object_body_is_malformed(api_key: str, body: bytes) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))

    with pytest.raises(MalformedModelOutput, match="llm response body"):
        await llm_client.complete("sys", "hello", transport=transport)
