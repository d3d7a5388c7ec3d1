"""Application Service for reading the daily data dumps.

A dump is one gzip-compressed XML document listing every nation or region.
It is streamed, decompressed and decoded incrementally, and only the items
accepted by the caller's predicate are kept in memory.
"""

import datetime
import logging
import zlib
from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Callable, List, Optional

from nationscript.core.decoding import entities
from nationscript.core.decoding.driver import DecodeDriver
from nationscript.core.decoding.schema import NodeSchema, filtered_list
from nationscript.core.services.request_service import RequestService
from nationscript.domain.errors import DumpNotFoundError, DumpNotModifiedError, ParseError
from nationscript.domain.models.request import ApiRequest, to_id_form
from nationscript.infrastructure.config.settings import DEFAULT_DUMP_URL
from nationscript.infrastructure.filesystem.dump_store import DumpStore

logger = logging.getLogger(__name__)

class DumpKind(Enum):
    NATIONS = ('nations', 'NATION', entities.NATION)
    REGIONS = ('regions', 'REGION', entities.REGION)

    def __init__(self, slug: str, item_tag: str, schema: NodeSchema):
        self.slug = slug
        self.item_tag = item_tag
        self.schema = schema

class DumpMode(str, Enum):
    """How a dump is obtained."""
    DOWNLOAD = 'download'  # Download, keep a local copy
    DOWNLOAD_IF_CHANGED = 'download-if-changed'  # Download only if newer than the local copy
    READ_REMOTE = 'read-remote'  # Download without keeping a copy
    LOCAL = 'local'  # Local copy only, no API call
    LOCAL_OR_DOWNLOAD = 'local-or-download'

def accept_all(item: Any) -> bool:
    return True

async def gunzip(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Decompresses a gzip stream chunk by chunk."""
    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    try:
        async for chunk in chunks:
            data = decompressor.decompress(chunk)
            if data:
                yield data
        tail = decompressor.flush()
    except zlib.error as e:
        raise ParseError(e) from e
    if tail:
        yield tail

class DumpService:
    """Reads nation and region dumps, remote or local."""

    def __init__(
        self,
        request_service: RequestService,
        store: DumpStore,
        dump_url: str = DEFAULT_DUMP_URL,
    ):
        self.request_service = request_service
        self.store = store
        self.dump_url = dump_url.rstrip('/')

    def file_name(self, kind: DumpKind, date: Optional[datetime.date] = None) -> str:
        date = date or datetime.date.today()
        return f"{kind.slug}_{date.isoformat()}.xml.gz"

    def url_for(self, kind: DumpKind, date: Optional[datetime.date] = None) -> str:
        """Current dump URL, or the archive URL for a past date."""
        if date is None or date == datetime.date.today():
            return f"{self.dump_url}/{kind.slug}.xml.gz"
        # Archives live next to /pages on the same host
        base = self.dump_url.rsplit('/', 1)[0]
        return f"{base}/archive/{kind.slug}/{date.isoformat()}-{kind.slug}-xml.gz"

    async def _remote(self, kind: DumpKind, date: Optional[datetime.date], if_modified_since: Optional[str]):
        request = ApiRequest(url=self.url_for(kind, date), name=f"dump:{kind.slug}")
        if if_modified_since:
            request.headers['If-Modified-Since'] = if_modified_since
        return await self.request_service.execute(request)

    async def _stream_remote(self, response, file_name: Optional[str]) -> AsyncIterator[bytes]:
        chunks = response.aiter_bytes()
        if file_name is not None:
            chunks = self.store.tee(file_name, chunks)
        try:
            async for chunk in chunks:
                yield chunk
        finally:
            if file_name is not None:
                await chunks.aclose()
            await response.aclose()

    async def open(self, kind: DumpKind, mode: DumpMode = DumpMode.DOWNLOAD_IF_CHANGED,
                   date: Optional[datetime.date] = None) -> AsyncIterator[bytes]:
        """Returns the compressed byte stream of a dump according to ``mode``.

        Raises:
            DumpNotFoundError: If a local copy is required and missing.
        """
        mode = DumpMode(mode)
        file_name = self.file_name(kind, date)
        logger.info(f"Opening {kind.slug} dump ({mode.value})")

        if mode is DumpMode.LOCAL:
            if not self.store.exists(file_name):
                raise DumpNotFoundError(str(self.store.path_for(file_name)))
            return self.store.iter_chunks(file_name)

        if mode is DumpMode.LOCAL_OR_DOWNLOAD and self.store.exists(file_name):
            return self.store.iter_chunks(file_name)

        if mode is DumpMode.DOWNLOAD_IF_CHANGED:
            try:
                response = await self._remote(kind, date, self.store.if_modified_since(file_name))
            except DumpNotModifiedError:
                logger.info(f"Remote {kind.slug} dump unchanged, using local copy")
                return self.store.iter_chunks(file_name)
            return self._stream_remote(response, file_name)

        response = await self._remote(kind, date, None)
        keep = None if mode is DumpMode.READ_REMOTE else file_name
        return self._stream_remote(response, keep)

    async def read(
        self,
        kind: DumpKind,
        mode: DumpMode = DumpMode.DOWNLOAD_IF_CHANGED,
        predicate: Optional[Callable[[Any], bool]] = None,
        date: Optional[datetime.date] = None,
    ) -> List[Any]:
        """Decodes a dump and returns the items accepted by ``predicate``.

        Args:
            kind: Which dump to read.
            mode: How to obtain it.
            predicate: Called with every decoded item; items it rejects are dropped.
            date: Day of an archived dump (today's dump if None).
        """
        chunks = await self.open(kind, mode, date)
        root_factory = filtered_list(kind.item_tag, kind.schema, predicate or accept_all)
        driver = DecodeDriver(root_factory=root_factory)
        decompressed = gunzip(chunks)
        try:
            items = await driver.decode(decompressed)
        finally:
            # Releases the response and discards a partial download
            await decompressed.aclose()
            await chunks.aclose()
        if driver.root is not None:
            logger.info(f"Kept {len(items or [])} of {driver.root.seen} {kind.slug} from the dump")
        return items or []

def in_region(region: str) -> Callable[[Any], bool]:
    """Predicate keeping nation dump items that reside in ``region``."""
    wanted = to_id_form(region)
    def accept(item: Any) -> bool:
        return isinstance(item, dict) and to_id_form(str(item.get('region', ''))) == wanted
    return accept
