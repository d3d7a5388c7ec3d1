"""Transport-level response handed from the HTTP adapter to the services."""

from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

@dataclass
class TransportResponse:
    """A completed HTTP call whose body has not been read yet.

    Header names are stored lower-cased. ``body`` yields raw bytes in chunks
    as they arrive; ``close`` releases the connection and must be awaited
    once the caller is done with the body.
    """
    status_code: int
    headers: Dict[str, str]
    body: Callable[[], AsyncIterator[bytes]]
    close: Optional[Callable[[], Awaitable[None]]] = None
    reason: str = ""
    _closed: bool = field(default=False, repr=False)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self.body()

    async def aread(self) -> bytes:
        chunks = [chunk async for chunk in self.body()]
        return b"".join(chunks)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.close is not None:
            await self.close()
