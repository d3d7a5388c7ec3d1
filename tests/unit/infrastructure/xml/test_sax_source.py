from unittest.mock import MagicMock, call

import pytest

from nationscript.domain.interfaces.event_handler import MarkupEventHandler
from nationscript.infrastructure.xml.sax_source import SaxEventSource

class RecordingHandler(MarkupEventHandler):
    def __init__(self):
        self.events = []

    def on_open(self, tag, attributes):
        self.events.append(('open', tag, attributes))

    def on_close(self, tag):
        self.events.append(('close', tag))

    def on_text(self, text):
        self.events.append(('text', text))

    def on_cdata(self, text):
        self.events.append(('cdata', text))

    def on_error(self, cause):
        self.events.append(('error', cause))

    def on_end(self):
        self.events.append(('end',))

def merged(events):
    """Joins adjacent text events, which expat may split anywhere."""
    result = []
    for event in events:
        if result and event[0] in ('text', 'cdata') and result[-1][0] == event[0]:
            result[-1] = (event[0], result[-1][1] + event[1])
        else:
            result.append(event)
    return result

@pytest.fixture
def handler():
    return RecordingHandler()

def test_events_are_forwarded_in_order(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A x="1"><B>hi</B><!-- note --></A>')
    source.close()
    assert merged(handler.events) == [
        ('open', 'A', {'x': '1'}),
        ('open', 'B', {}),
        ('text', 'hi'),
        ('close', 'B'),
        ('close', 'A'),
        ('end',),
    ]

def test_cdata_is_reported_separately(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A>plain<![CDATA[<raw> & more]]></A>')
    source.close()
    assert ('cdata', '<raw> & more') in merged(handler.events)
    assert ('text', 'plain') in merged(handler.events)

def test_events_arrive_while_feeding(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A><B>')
    assert ('open', 'A', {}) in handler.events
    assert handler.events[-1][0] != 'end'

def test_malformed_input_reports_one_error(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A></B>')
    source.feed(b'</A>')
    source.close()
    kinds = [event[0] for event in handler.events]
    assert kinds.count('error') == 1
    assert 'end' not in kinds
    assert source.done

def test_truncated_input_reports_error_on_close(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A><B>')
    source.close()
    assert handler.events[-1][0] == 'error'

def test_empty_input_ends_without_error(handler):
    source = SaxEventSource(handler)
    source.feed(b'')
    source.close()
    assert handler.events == [('end',)]

def test_close_is_idempotent(handler):
    source = SaxEventSource(handler)
    source.feed(b'<A/>')
    source.close()
    source.close()
    assert [e[0] for e in handler.events].count('end') == 1

def test_handler_exceptions_propagate():
    handler = MagicMock(spec=MarkupEventHandler)
    handler.on_open.side_effect = KeyError("boom")
    source = SaxEventSource(handler)
    with pytest.raises(KeyError):
        source.feed(b'<A/>')
    handler.on_error.assert_not_called()
    assert handler.on_open.call_args == call('A', {})
