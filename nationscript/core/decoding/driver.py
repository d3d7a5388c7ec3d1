"""Decode driver: couples a markup event source with a decode tree.

The root node is chosen lazily, on the first open event, either from an
explicit factory given by the caller or from the schema registry by the
root tag's name.
"""

import logging
from typing import Any, AsyncIterable, Callable, Dict, Optional

from nationscript.core.decoding.entities import default_registry
from nationscript.core.decoding.node import DecodeNode, NodeFactory
from nationscript.core.decoding.schema import SchemaRegistry
from nationscript.domain.errors import ParseError
from nationscript.domain.interfaces.event_handler import MarkupEventHandler
from nationscript.infrastructure.xml.sax_source import SaxEventSource

logger = logging.getLogger(__name__)

class DecodeDriver(MarkupEventHandler):
    """Runs one decode from raw bytes to a finished product.

    Usage::

        driver = DecodeDriver()
        async for chunk in response.aiter_bytes():
            driver.feed(chunk)
        product = driver.finish()

    or simply ``await driver.decode(response.aiter_bytes())``.
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        root_factory: Optional[NodeFactory] = None,
        source_factory: Callable[[MarkupEventHandler], Any] = SaxEventSource,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.root_factory = root_factory
        self.root: Optional[DecodeNode] = None
        self._source = source_factory(self)
        self._error: Optional[ParseError] = None
        self.finished = False

    # --- MarkupEventHandler ---

    def on_open(self, tag: str, attributes: Dict[str, str]) -> None:
        if self.root is None:
            if self.root_factory is not None:
                self.root = self.root_factory(tag)
            else:
                self.root = self.registry.create(tag)
            logger.debug(f"Decoding <{tag}> with {self.root!r}")
        self.root.handle_open(tag, attributes)

    def on_close(self, tag: str) -> None:
        if self.root is not None:
            self.root.handle_close(tag)

    def on_text(self, text: str) -> None:
        if self.root is not None:
            self.root.handle_text(text)

    def on_cdata(self, text: str) -> None:
        if self.root is not None:
            self.root.handle_cdata(text)

    def on_error(self, cause: BaseException) -> None:
        self._error = ParseError(cause)
        self.root = None

    def on_end(self) -> None:
        self.finished = True

    # --- Driving ---

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error from self._error.cause

    def feed(self, data: bytes) -> None:
        """Pushes a chunk of the body through the parser.

        Raises:
            ParseError: If the markup is malformed.
            UnknownSchemaError: If the root tag has no registered schema.
        """
        self._raise_if_failed()
        self._source.feed(data)
        self._raise_if_failed()

    def finish(self) -> Any:
        """Ends the input and returns the root's product.

        Returns None when the body contained no element at all.

        Raises:
            ParseError: If the markup is malformed or truncated.
            ProductWithheldError: If the root element was never closed.
        """
        self._raise_if_failed()
        self._source.close()
        self._raise_if_failed()
        if self.root is None:
            return None
        return self.root.deliver()

    async def decode(self, chunks: AsyncIterable[bytes]) -> Any:
        async for chunk in chunks:
            self.feed(chunk)
        return self.finish()

    def decode_bytes(self, data: bytes) -> Any:
        self.feed(data)
        return self.finish()
