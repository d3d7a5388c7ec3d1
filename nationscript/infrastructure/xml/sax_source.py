"""Incremental markup event source built on the expat SAX reader.

Bytes are pushed in with :meth:`SaxEventSource.feed` as they arrive from the
network and events are forwarded to a :class:`MarkupEventHandler` as soon as
expat produces them. CDATA sections are reported separately through the SAX
lexical handler property.
"""

import logging
import xml.sax
from xml.sax.handler import (
    ContentHandler,
    LexicalHandler,
    feature_external_ges,
    feature_namespaces,
    property_lexical_handler,
)

from nationscript.domain.interfaces.event_handler import MarkupEventHandler

logger = logging.getLogger(__name__)

class _SaxAdapter(ContentHandler, LexicalHandler):
    """Translates SAX callbacks into markup events."""

    def __init__(self, handler: MarkupEventHandler):
        ContentHandler.__init__(self)
        self._handler = handler
        self._in_cdata = False

    def startElement(self, name, attrs):
        self._handler.on_open(name, dict(attrs.items()))

    def endElement(self, name):
        self._handler.on_close(name)

    def characters(self, content):
        if self._in_cdata:
            self._handler.on_cdata(content)
        else:
            self._handler.on_text(content)

    def startCDATA(self):
        self._in_cdata = True

    def endCDATA(self):
        self._in_cdata = False

    def comment(self, content):
        pass

    def startDTD(self, name, public_id, system_id):
        pass

    def endDTD(self):
        pass


class SaxEventSource:
    """Pushes byte chunks through an incremental SAX parser.

    Exactly one of ``on_end`` or ``on_error`` reaches the handler, and nothing
    follows it. Exceptions raised by the handler itself propagate to the
    caller of :meth:`feed` or :meth:`close`.
    """

    def __init__(self, handler: MarkupEventHandler):
        self._handler = handler
        self._parser = xml.sax.make_parser()
        self._parser.setFeature(feature_namespaces, False)
        self._parser.setFeature(feature_external_ges, False)
        adapter = _SaxAdapter(handler)
        self._parser.setContentHandler(adapter)
        self._parser.setProperty(property_lexical_handler, adapter)
        self._received = 0
        self.done = False

    def feed(self, data: bytes) -> None:
        if self.done or not data:
            return
        self._received += len(data)
        try:
            self._parser.feed(data)
        except xml.sax.SAXParseException as e:
            self._fail(e)

    def close(self) -> None:
        """Signals the end of input and emits the final event."""
        if self.done:
            return
        if self._received == 0:
            # Nothing was sent at all; an empty body is not a parse error
            self.done = True
            self._handler.on_end()
            return
        try:
            self._parser.close()
        except xml.sax.SAXParseException as e:
            self._fail(e)
            return
        self.done = True
        self._handler.on_end()

    def _fail(self, error: xml.sax.SAXParseException) -> None:
        logger.debug(f"Markup error after {self._received} bytes: {error}")
        self.done = True
        self._handler.on_error(error)
