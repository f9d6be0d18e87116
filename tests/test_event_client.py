"""Tests for the CLI's client of a running event listener"""

import json

import httpx
import pytest

from events import EventClient, ListenerUnavailable
from session import AuthError, BrokerUnavailable, ExchangeFailed


def make_client(handler):
    return EventClient(host="daemon.test", port=8766, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_forward_deep_link_posts_batch():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, json={"accepted": True})

    result = await make_client(handler).forward_deep_link(["waystation://home", "waystation://x"])

    assert result == {"accepted": True}
    assert seen["url"] == "http://daemon.test:8766/events/deep-link"
    assert seen["body"] == {"urls": ["waystation://home", "waystation://x"]}


@pytest.mark.asyncio
async def test_get_session_returns_summary():
    client = make_client(lambda request: httpx.Response(200, json={"authenticated": False}))

    assert await client.get_session() == {"authenticated": False}


@pytest.mark.asyncio
async def test_error_kinds_are_raised_as_auth_errors():
    def handler(request):
        if request.url.path.endswith("/login"):
            return httpx.Response(503, json={"error": "bridge down", "kind": "broker_unavailable"})
        return httpx.Response(502, json={"error": "teardown failed", "kind": "exchange_failed"})

    client = make_client(handler)

    with pytest.raises(BrokerUnavailable):
        await client.login()
    with pytest.raises(ExchangeFailed) as excinfo:
        await client.logout()
    assert excinfo.value.message == "teardown failed"


@pytest.mark.asyncio
async def test_unknown_error_is_generic_auth_error():
    client = make_client(lambda request: httpx.Response(500, text="Internal Server Error"))

    with pytest.raises(AuthError):
        await client.refresh()


@pytest.mark.asyncio
async def test_missing_daemon_is_listener_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ListenerUnavailable):
        await make_client(handler).get_session()
