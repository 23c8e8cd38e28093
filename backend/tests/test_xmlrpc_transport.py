import asyncio
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from app.connectors.xmlrpc_transport import XmlRpcTransport, build_method_call
from app.exceptions import MalformedResponse, RpcFault, TransportError

from odoo_fakes import fault_response, method_response, parse_method_call


def make_transport(handler, **kwargs) -> XmlRpcTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return XmlRpcTransport("https://odoo.example.com/", client=client, **kwargs)


class FlakyHandler:
    """Fails with `error` for the first `failures` requests, then answers `value`."""

    def __init__(self, failures, error=httpx.ConnectError, value=7):
        self.failures = failures
        self.error = error
        self.value = value
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if len(self.requests) <= self.failures:
            raise self.error("boom", request=request)
        return httpx.Response(200, text=method_response(self.value))


def test_build_method_call_envelope():
    body = build_method_call("authenticate", ["db", "user", "key", {}])
    assert body.startswith('<?xml version="1.0"?>')
    method, params = parse_method_call(body.encode())
    assert method == "authenticate"
    assert params == ["db", "user", "key", {}]


@pytest.mark.asyncio
async def test_call_posts_xml_to_service_url():
    handler = FlakyHandler(failures=0, value=[{"id": 1}])
    transport = make_transport(handler)

    result = await transport.call("object", "execute_kw", ["db", 2, "key", "res.company", "search_read", [[]], {}])

    assert result == [{"id": 1}]
    request = handler.requests[0]
    assert str(request.url) == "https://odoo.example.com/xmlrpc/2/object"
    assert request.method == "POST"
    assert request.headers["content-type"] == "text/xml"
    await transport.close()


@pytest.mark.asyncio
async def test_network_errors_are_retried_with_backoff():
    handler = FlakyHandler(failures=2)
    transport = make_transport(handler)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await transport.call("common", "authenticate", ["db", "u", "k", {}])

    assert result == 7
    assert len(handler.requests) == 3
    assert mock_sleep.await_args_list == [call(1), call(2)]


@pytest.mark.asyncio
async def test_timeouts_are_retried():
    handler = FlakyHandler(failures=1, error=httpx.ReadTimeout)
    transport = make_transport(handler)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        assert await transport.call("common", "authenticate", []) == 7

    mock_sleep.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_dropped_keep_alive_connection_is_retried():
    handler = FlakyHandler(failures=1, error=httpx.RemoteProtocolError)
    transport = make_transport(handler)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        assert await transport.call("common", "authenticate", []) == 7

    assert len(handler.requests) == 2
    mock_sleep.assert_awaited_once_with(1)


class StallingHandler:
    """Sends the first bytes of the body and then stalls, for the first `stalls` requests."""

    def __init__(self, stalls):
        self.stalls = stalls
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        body = method_response(7).encode()
        if len(self.requests) > self.stalls:
            return httpx.Response(200, content=body)

        async def trickle():
            yield body[:10]
            await asyncio.Event().wait()
            yield body[10:]

        return httpx.Response(200, content=trickle())


@pytest.mark.asyncio
async def test_stalled_attempt_is_aborted_and_retried():
    handler = StallingHandler(stalls=1)
    transport = make_transport(handler, timeout=0.05)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        assert await transport.call("common", "authenticate", []) == 7

    assert len(handler.requests) == 2
    mock_sleep.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_stalled_last_attempt_raises_transport_error():
    handler = StallingHandler(stalls=10)
    transport = make_transport(handler, timeout=0.05, max_retries=1)

    with pytest.raises(TransportError) as exc_info:
        await transport.call("common", "authenticate", [])

    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
    assert "TimeoutError" in str(exc_info.value)


@pytest.mark.asyncio
async def test_retries_exhausted_raise_transport_error():
    handler = FlakyHandler(failures=10)
    transport = make_transport(handler)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(TransportError) as exc_info:
            await transport.call("common", "authenticate", [])

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert len(handler.requests) == 3
    assert mock_sleep.await_args_list == [call(1), call(2)]


@pytest.mark.asyncio
async def test_max_retries_override():
    handler = FlakyHandler(failures=10)
    transport = make_transport(handler)

    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(TransportError):
            await transport.call("common", "authenticate", [], max_retries=4)

    assert len(handler.requests) == 4
    assert mock_sleep.await_args_list == [call(1), call(2), call(4)]


@pytest.mark.asyncio
async def test_fault_is_raised_without_retry():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text=fault_response(3, "Access Denied"))

    transport = make_transport(handler)
    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(RpcFault) as exc_info:
            await transport.call("object", "execute_kw", [])

    assert exc_info.value.fault_code == 3
    assert exc_info.value.fault_string == "Access Denied"
    assert len(requests) == 1
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_malformed_body_is_not_retried():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text="<html>Bad Gateway</html")

    transport = make_transport(handler)
    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(MalformedResponse):
            await transport.call("common", "version", [])

    assert len(requests) == 1
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_response_without_params_is_malformed():
    transport = make_transport(lambda request: httpx.Response(200, text="<methodResponse/>"))
    with pytest.raises(MalformedResponse):
        await transport.call("common", "version", [])


@pytest.mark.asyncio
async def test_http_error_status_is_not_retried():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(502, text="Bad Gateway")

    transport = make_transport(handler)
    with patch("app.connectors.xmlrpc_transport.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(httpx.HTTPStatusError):
            await transport.call("common", "version", [])

    assert len(requests) == 1
    mock_sleep.assert_not_awaited()
