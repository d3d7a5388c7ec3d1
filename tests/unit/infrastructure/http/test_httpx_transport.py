import asyncio

import httpx
import pytest

from nationscript.domain.errors import TransportError
from nationscript.infrastructure.http.httpx_transport import HttpxTransport

def test_send_streams_body_and_lowercases_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['method'] = request.method
        seen['body'] = request.content
        seen['agent'] = request.headers['user-agent']
        return httpx.Response(200, headers={'RateLimit-Remaining': '49'}, content=b"<NATION/>")

    async def go():
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        response = await transport.send('POST', 'https://example.test/api', {'User-Agent': 'tester'}, b"nation=a")
        body = await response.aread()
        await response.aclose()
        await transport.aclose()
        return response, body

    response, body = asyncio.run(go())
    assert seen == {'method': 'POST', 'body': b"nation=a", 'agent': 'tester'}
    assert response.status_code == 200
    assert response.header('RateLimit-Remaining') == '49'
    assert 'ratelimit-remaining' in response.headers
    assert body == b"<NATION/>"

def test_error_status_is_returned_not_raised():
    transport = HttpxTransport(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    async def go():
        response = await transport.send('GET', 'https://example.test/api', {})
        await response.aclose()
        return response

    response = asyncio.run(go())
    assert response.status_code == 404
    assert response.reason == 'Not Found'

def test_connection_failure_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    transport = HttpxTransport(transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(transport.send('GET', 'https://example.test/api', {}))
    assert isinstance(exc_info.value.cause, httpx.ConnectError)

def test_shared_client_is_not_closed():
    async def go():
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        transport = HttpxTransport(client=client)
        await transport.aclose()
        closed = client.is_closed
        await client.aclose()
        return closed

    assert asyncio.run(go()) is False
