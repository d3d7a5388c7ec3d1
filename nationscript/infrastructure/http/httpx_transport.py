"""HttpTransport implementation on top of ``httpx.AsyncClient``.

Responses are opened in streaming mode so the decode framework can parse
the body while it is still arriving. A custom ``httpx`` transport (for
example :class:`httpx.MockTransport`) can be injected for tests.
"""

import logging
from typing import Mapping, Optional

import httpx

from nationscript.domain.errors import TransportError
from nationscript.domain.interfaces.transport import HttpTransport
from nationscript.domain.models.response import TransportResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

class HttpxTransport(HttpTransport):
    """Sends API calls through a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the transport.

        Args:
            client: An existing client to reuse. It is not closed by :meth:`aclose`.
            timeout: Timeout in seconds for connect and read operations.
            transport: Optional low-level httpx transport for a client created here.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.debug(f"HttpxTransport initialized (timeout={timeout}s, own client={self._owns_client})")

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        request = self._client.build_request(method, url, headers=dict(headers), content=body)
        logger.debug(f"{method} {url}")
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"HTTP transport error for {method} {url}: {e}")
            raise TransportError(f"{method} {url} failed: {e}", cause=e) from e

        async def body_chunks():
            try:
                async for chunk in response.aiter_bytes():
                    yield chunk
            except httpx.HTTPError as e:
                raise TransportError(f"Reading response body of {url} failed: {e}", cause=e) from e

        return TransportResponse(
            status_code=response.status_code,
            headers={key.lower(): value for key, value in response.headers.items()},
            body=body_chunks,
            close=response.aclose,
            reason=response.reason_phrase,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
