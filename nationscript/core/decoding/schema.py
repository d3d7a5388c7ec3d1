"""Declarative decode schemas and the registry of top-level schemas.

A :class:`NodeSchema` maps child tags to :class:`TagRule` entries (target
field, converter and optional delegate factory) and attribute names to
rules applied when the element opens. Calling a schema with a tag name
creates a fresh :class:`TableDecodeNode`, so schemas double as node
factories and can be nested in each other's rules.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from nationscript.core.decoding.converters import identity
from nationscript.core.decoding.node import (
    CollectionDecodeNode,
    DecodeNode,
    FilteringCollectionNode,
    NodeFactory,
)
from nationscript.domain.errors import UnknownSchemaError
from nationscript.domain.models.common import Attributes, Converter

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TagRule:
    """How one child tag (or attribute) is written into the product."""
    field: str
    converter: Converter = identity
    delegate: Optional[NodeFactory] = None

class NodeSchema:
    """Field table for one element kind.

    ``tags`` maps child tags to rules, ``attributes`` maps the element's own
    attributes to rules, and ``text`` (if set) says where the element's own
    text goes, for elements such as ``<WABADGE type="commend">42</WABADGE>``
    that carry both.
    """

    def __init__(
        self,
        name: str,
        tags: Optional[Dict[str, TagRule]] = None,
        attributes: Optional[Dict[str, TagRule]] = None,
        text: Optional[TagRule] = None,
    ):
        self.name = name
        self.tags: Dict[str, TagRule] = dict(tags or {})
        self.attributes: Dict[str, TagRule] = dict(attributes or {})
        self.text = text

    def __call__(self, root_tag: str) -> "TableDecodeNode":
        return TableDecodeNode(root_tag, self)

    def __repr__(self) -> str:
        return f"NodeSchema({self.name!r}, {len(self.tags)} tags)"

    def extend(self, name: str, tags: Optional[Dict[str, TagRule]] = None,
               attributes: Optional[Dict[str, TagRule]] = None) -> "NodeSchema":
        """Returns a new schema with extra rules layered over this one."""
        return NodeSchema(
            name,
            tags={**self.tags, **(tags or {})},
            attributes={**self.attributes, **(attributes or {})},
            text=self.text,
        )

class TableDecodeNode(DecodeNode):
    """Decode node whose tag decisions come from a :class:`NodeSchema`."""

    def __init__(self, root_tag: str, schema: NodeSchema):
        super().__init__(root_tag)
        self.schema = schema

    def on_enter(self, attributes: Attributes) -> None:
        for name, rule in self.schema.attributes.items():
            if name in attributes:
                self.write(rule.field, rule.converter(attributes[name]))
        if self.schema.text is not None:
            self.set_target(self.schema.text.field, self.schema.text.converter)

    def on_seal(self) -> None:
        if self.schema.text is not None:
            self.write(self.schema.text.field, self.buffer.consume())

    def decide(self, tag: str, attributes: Attributes) -> bool:
        rule = self.schema.tags.get(tag)
        if rule is None:
            return False
        self.set_target(rule.field, rule.converter)
        if rule.delegate is not None:
            child = rule.delegate(tag)
            self.assign_delegate(child)
            child.enter(attributes)
        return True

# --- Collection factories ---

def primitive_list(item_tag: Optional[str] = None, converter: Converter = identity) -> NodeFactory:
    """Factory for a list of scalar children (``<TAGS><TAG>a</TAG>...</TAGS>``)."""
    def create(root_tag: str) -> CollectionDecodeNode:
        return CollectionDecodeNode(root_tag, item_tag=item_tag, item_converter=converter)
    return create

def complex_list(item_tag: str, item_factory: NodeFactory) -> NodeFactory:
    """Factory for a list of structured children (``<NATIONS><NATION>...</NATION>...``)."""
    def create(root_tag: str) -> CollectionDecodeNode:
        return CollectionDecodeNode(root_tag, item_tag=item_tag, item_factory=item_factory)
    return create

def filtered_list(item_tag: str, item_factory: NodeFactory, predicate: Callable[[Any], bool]) -> NodeFactory:
    def create(root_tag: str) -> FilteringCollectionNode:
        return FilteringCollectionNode(root_tag, predicate, item_tag=item_tag, item_factory=item_factory)
    return create

# --- Registry ---

class SchemaRegistry:
    """Maps a document's root tag to the factory of its root node."""

    def __init__(self, factories: Optional[Dict[str, NodeFactory]] = None):
        self._factories: Dict[str, NodeFactory] = dict(factories or {})

    def register(self, tag: str, factory: NodeFactory) -> "SchemaRegistry":
        if not callable(factory):
            raise TypeError(f"Invalid node factory for <{tag}>: {factory!r}")
        if tag in self._factories:
            logger.debug(f"Replacing decode schema for <{tag}>")
        self._factories[tag] = factory
        return self

    def create(self, tag: str) -> DecodeNode:
        """Builds an un-entered root node for ``tag``.

        Raises:
            UnknownSchemaError: If nothing is registered for the tag.
        """
        factory = self._factories.get(tag)
        if factory is None:
            raise UnknownSchemaError(tag)
        return factory(tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self._factories

    @property
    def tags(self) -> Iterable[str]:
        return sorted(self._factories)
