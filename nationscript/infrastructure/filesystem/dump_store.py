"""Local copies of the daily data dumps.

Uses `aiofiles` for async I/O so reading a dump from disk does not block
the event loop while the decoder works through it.
"""

import logging
from email.utils import formatdate
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Optional, Union

import aiofiles
import aiofiles.os

from nationscript.domain.errors import DumpNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = '.part'

class DumpStore:
    """Reads and writes dump files inside one directory."""

    def __init__(self, directory: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.directory = Path(directory)
        self.chunk_size = chunk_size
        logger.debug(f"DumpStore initialized at {self.directory}")

    def path_for(self, file_name: str) -> Path:
        return self.directory / file_name

    def exists(self, file_name: str) -> bool:
        return self.path_for(file_name).is_file()

    def if_modified_since(self, file_name: str) -> Optional[str]:
        """HTTP date of the local copy's modification time, or None if there is no copy."""
        path = self.path_for(file_name)
        if not path.is_file():
            return None
        return formatdate(path.stat().st_mtime, usegmt=True)

    async def iter_chunks(self, file_name: str) -> AsyncIterator[bytes]:
        """Yields the raw bytes of a local copy.

        Raises:
            DumpNotFoundError: If there is no local copy.
        """
        path = self.path_for(file_name)
        if not path.is_file():
            raise DumpNotFoundError(str(path))
        logger.info(f"Reading local dump {path}")
        async with aiofiles.open(path, mode='rb') as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

    async def tee(self, file_name: str, chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        """Passes ``chunks`` through while saving them as the local copy.

        The copy is written next to its final name and only replaces an
        older copy once the stream has been read completely.
        """
        path = self.path_for(file_name)
        partial = path.with_name(path.name + PARTIAL_SUFFIX)
        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        completed = False
        try:
            async with aiofiles.open(partial, mode='wb') as f:
                async for chunk in chunks:
                    await f.write(chunk)
                    yield chunk
            await aiofiles.os.replace(partial, path)
            completed = True
            logger.info(f"Saved dump to {path}")
        finally:
            if not completed and partial.exists():
                logger.warning(f"Discarding incomplete dump download {partial}")
                await aiofiles.os.remove(partial)
