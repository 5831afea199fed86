"""External API caller tests."""

import json

import httpx
import pytest

from agentflow.exceptions import ExternalCallError
from agentflow.external import HttpxExternalCaller


@pytest.mark.asyncio
async def test_post_sends_json_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"received": True})

    caller = HttpxExternalCaller(
        headers={"Authorization": "Bearer token"},
        transport=httpx.MockTransport(handler),
    )
    result = await caller.call("https://api.example.com/hook", payload={"a": 1})

    assert result == {"received": True}
    assert seen == {"method": "POST", "body": {"a": 1}, "auth": "Bearer token"}


@pytest.mark.asyncio
async def test_get_sends_query_params_and_returns_text():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "plumber"
        return httpx.Response(200, text="ok")

    caller = HttpxExternalCaller(transport=httpx.MockTransport(handler))
    assert await caller.call("https://api.example.com", "get", {"q": "plumber"}) == "ok"


@pytest.mark.asyncio
async def test_non_success_status_raises():
    caller = HttpxExternalCaller(
        transport=httpx.MockTransport(lambda request: httpx.Response(503))
    )
    with pytest.raises(ExternalCallError) as exc_info:
        await caller.call("https://api.example.com", payload={})
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    caller = HttpxExternalCaller(transport=httpx.MockTransport(handler))
    with pytest.raises(ExternalCallError, match="connection refused"):
        await caller.call("https://api.example.com")
