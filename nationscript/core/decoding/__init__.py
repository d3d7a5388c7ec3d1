"""Streaming decode framework.

Markup events are routed through a tree of decode nodes, each owning one
element's direct children, so a response is turned into plain dicts and
lists without ever building the whole document in memory.
"""

from nationscript.core.decoding.converters import (
    convert_array,
    convert_boolean,
    convert_number,
    identity,
    none_if_zero,
)
from nationscript.core.decoding.node import (
    CollectionDecodeNode,
    DecodeNode,
    FilteringCollectionNode,
    TextBuffer,
)
from nationscript.core.decoding.schema import NodeSchema, SchemaRegistry, TableDecodeNode, TagRule
from nationscript.core.decoding.driver import DecodeDriver

__all__ = [
    'CollectionDecodeNode',
    'DecodeDriver',
    'DecodeNode',
    'FilteringCollectionNode',
    'NodeSchema',
    'SchemaRegistry',
    'TableDecodeNode',
    'TagRule',
    'TextBuffer',
    'convert_array',
    'convert_boolean',
    'convert_number',
    'identity',
    'none_if_zero',
]
