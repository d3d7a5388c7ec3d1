"""Interface for sending HTTP requests to the API.

Keeps the request service independent of the HTTP client library.
"""

import abc
from typing import Mapping, Optional

from nationscript.domain.models.response import TransportResponse

class HttpTransport(abc.ABC):
    """Abstract Base Class for HTTP transports."""

    @abc.abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        """Sends one request and returns once the response headers arrived.

        The body is streamed through the returned response, which the caller
        must close.

        Raises:
            TransportError: If the call could not be completed.
        """
        pass

    async def aclose(self) -> None:
        """Releases pooled connections. Optional for implementations."""
        pass
