import asyncio

import pytest

from nationscript.core.decoding.converters import convert_number
from nationscript.core.decoding.driver import DecodeDriver
from nationscript.core.decoding.schema import NodeSchema, SchemaRegistry, TagRule, primitive_list
from nationscript.domain.errors import ParseError, ProductWithheldError, UnknownSchemaError

ROOT = NodeSchema('root', tags={
    'A': TagRule('a', convert_number),
    'LIST': TagRule('list', delegate=primitive_list('I')),
})

@pytest.fixture
def registry():
    return SchemaRegistry({'ROOT': ROOT})

def test_end_to_end_document(registry):
    driver = DecodeDriver(registry=registry)
    assert driver.decode_bytes(b"<ROOT><A>1</A><LIST><I>x</I><I>y</I></LIST></ROOT>") == {'a': 1, 'list': ['x', 'y']}
    assert driver.finished

def test_chunked_input_gives_same_result(registry):
    """Test that splitting the body at arbitrary points does not change the product."""
    data = b"<ROOT><A>12</A><LIST><I>xyz</I><I>y</I></LIST></ROOT>"
    driver = DecodeDriver(registry=registry)
    for i in range(len(data)):
        driver.feed(data[i:i + 1])
    assert driver.finish() == {'a': 12, 'list': ['xyz', 'y']}

def test_async_decode(registry):
    async def chunks():
        yield b"<ROOT><A>3.5</A>"
        yield b"<LIST></LIST></ROOT>"

    driver = DecodeDriver(registry=registry)
    assert asyncio.run(driver.decode(chunks())) == {'a': 3.5, 'list': []}

def test_root_factory_overrides_registry():
    driver = DecodeDriver(registry=SchemaRegistry(), root_factory=primitive_list('I'))
    assert driver.decode_bytes(b"<ANY><I>1</I><I>2</I></ANY>") == ['1', '2']

def test_unknown_root_tag(registry):
    driver = DecodeDriver(registry=registry)
    with pytest.raises(UnknownSchemaError):
        driver.decode_bytes(b"<MYSTERY/>")

def test_malformed_markup_raises_parse_error(registry):
    driver = DecodeDriver(registry=registry)
    with pytest.raises(ParseError) as exc_info:
        driver.decode_bytes(b"<ROOT><A>1</B></ROOT>")
    assert exc_info.value.cause is not None
    assert driver.root is None

def test_truncated_body_raises_parse_error(registry):
    driver = DecodeDriver(registry=registry)
    driver.feed(b"<ROOT><A>1</A>")
    with pytest.raises(ParseError):
        driver.finish()

def test_error_is_sticky(registry):
    driver = DecodeDriver(registry=registry)
    with pytest.raises(ParseError):
        driver.feed(b"<ROOT></WRONG>")
    with pytest.raises(ParseError):
        driver.feed(b"</ROOT>")

def test_empty_body_gives_none(registry):
    assert DecodeDriver(registry=registry).decode_bytes(b"") is None

def test_unsealed_root_is_withheld(registry):
    driver = DecodeDriver(registry=registry)
    driver.feed(b"<ROOT><A>1</A>")
    with pytest.raises(ProductWithheldError):
        driver.root.deliver()

def test_default_registry_is_used():
    driver = DecodeDriver()
    assert driver.decode_bytes(b'<WA council="2"></WA>') == {'council': 2}
