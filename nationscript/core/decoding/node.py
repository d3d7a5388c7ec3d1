"""Decode nodes: the building blocks of a streamed decode tree.

A node is responsible for the direct children of one element (its root tag).
Text children are accumulated and converted into a field of the node's
product; element children that need structure of their own are handed to a
single delegate node until that delegate seals, at which point its product
is absorbed into the parent. Events for unrecognised tags are ignored along
with their whole subtree.

Data is received through the following handlers:
- :meth:`DecodeNode.handle_open`
- :meth:`DecodeNode.handle_close`
- :meth:`DecodeNode.handle_text`
- :meth:`DecodeNode.handle_cdata`
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from nationscript.core.decoding.converters import identity
from nationscript.domain.errors import DecisionNotImplementedError, ProductWithheldError
from nationscript.domain.models.common import Attributes, Converter

logger = logging.getLogger(__name__)

class TextBuffer:
    """Accumulates the text of one scalar field along with its converter."""

    __slots__ = ('_chunks', 'converter')

    def __init__(self, converter: Converter = identity):
        self._chunks: List[str] = []
        self.converter = converter

    def append(self, text: str) -> None:
        self._chunks.append(text)

    @property
    def value(self) -> str:
        return ''.join(self._chunks)

    def reset(self, converter: Converter = identity) -> None:
        self._chunks = []
        self.converter = converter

    def consume(self) -> Any:
        """Returns the converted text and clears the buffer, keeping the converter."""
        converted = self.converter(self.value)
        self._chunks = []
        return converted

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)


class DecodeNode:
    """Builds one product from the events of a single element.

    Subclasses supply :meth:`decide`, which is asked about every direct child
    tag. A decision either targets a field (via :meth:`set_target`), optionally
    assigning a delegate for the child's subtree, or declines the tag by
    returning False, in which case the child's whole subtree is ignored.

    Handlers return True when the event changed the node's state and False
    otherwise. Once sealed, the node accepts no further events.
    """

    def __init__(self, root_tag: str, product: Any = None):
        self.root_tag = root_tag
        self.product: Any = {} if product is None else product
        self.target_field = ''
        self.buffer = TextBuffer()
        self.delegate: Optional["DecodeNode"] = None
        self.sealed = False
        self.entered = False
        self._open_child: Optional[str] = None
        self._ignored_tag: Optional[str] = None
        self._ignore_depth = 0

    def __repr__(self) -> str:
        state = 'sealed' if self.sealed else ('open' if self.entered else 'idle')
        return f"<{type(self).__name__} {self.root_tag} {state}>"

    # --- Lifecycle ---

    def enter(self, attributes: Optional[Attributes] = None) -> None:
        """Marks the root element as opened and applies its attributes."""
        self.entered = True
        self.on_enter(attributes or {})

    def on_enter(self, attributes: Attributes) -> None:
        pass

    def on_seal(self) -> None:
        pass

    def seal(self) -> None:
        self.sealed = True
        self._open_child = None

    def deliver(self) -> Any:
        """Returns the finished product.

        Raises:
            ProductWithheldError: If the root's closing tag has not been seen.
        """
        if not self.sealed:
            raise ProductWithheldError(self.root_tag)
        return self.product

    # --- Product building ---

    def decide(self, tag: str, attributes: Attributes) -> bool:
        raise DecisionNotImplementedError(type(self).__name__, tag)

    def set_target(self, field: str, converter: Converter = identity) -> "DecodeNode":
        """Points the node at a product field; pending text of the old target is dropped."""
        if not isinstance(field, str):
            raise TypeError(f"Invalid target field: {field!r}")
        if not callable(converter):
            raise TypeError(f"Invalid converter: {converter!r}")
        self.target_field = field
        self.buffer.reset(converter)
        return self

    def add_to_product(self, value: Any) -> None:
        """Writes a value to the current target; an empty target replaces the product."""
        self.write(self.target_field, value)

    def write(self, path: str, value: Any) -> None:
        if path == '':
            self.product = value
        else:
            self.set_field(path, value)

    def set_field(self, path: str, value: Any) -> None:
        """Writes a product field without touching the current target.

        Dotted paths write into nested dicts, which are created on demand.
        """
        if not isinstance(self.product, dict):
            raise TypeError(f"Cannot set field '{path}' on non-dict product of <{self.root_tag}>")
        container = self.product
        *parents, leaf = path.split('.')
        for part in parents:
            container = container.setdefault(part, {})
        container[leaf] = value

    def assign_delegate(self, node: "DecodeNode") -> "DecodeNode":
        if not isinstance(node, DecodeNode):
            raise TypeError(f"Invalid delegate assignment: {node!r}")
        self.delegate = node
        return self

    def absorb_delegate(self) -> None:
        """Moves a sealed delegate's product into this node's current target."""
        delegate = self.delegate
        self.delegate = None
        self.add_to_product(delegate.deliver())

    def _active_delegate(self) -> Optional["DecodeNode"]:
        if self.delegate is not None and self.delegate.entered:
            return self.delegate
        return None

    # --- Event handlers ---

    def handle_open(self, tag: str, attributes: Optional[Attributes] = None) -> bool:
        if self.sealed or not isinstance(tag, str):
            return False
        attributes = attributes or {}

        delegate = self.delegate
        if delegate is not None and delegate.entered:
            return delegate.handle_open(tag, attributes)

        if not self.entered:
            if tag != self.root_tag:
                return False
            self.enter(attributes)
            return True

        if self._ignored_tag is not None:
            if tag == self._ignored_tag:
                self._ignore_depth += 1
            return False

        # An armed delegate only enters on a direct child of this node
        if delegate is not None and self._open_child is None and tag == delegate.root_tag:
            return delegate.handle_open(tag, attributes)

        # Scalar children hold text only
        if self._open_child is not None or not self.decide(tag, attributes):
            logger.debug(f"<{self.root_tag}> ignoring child <{tag}>")
            self._ignored_tag = tag
            self._ignore_depth = 1
            return False

        if self._active_delegate() is None:
            self._open_child = tag
        return True

    def handle_close(self, tag: str) -> bool:
        if self.sealed or not isinstance(tag, str):
            return False

        delegate = self._active_delegate()
        if delegate is not None:
            handled = delegate.handle_close(tag)
            if delegate.sealed:
                self.absorb_delegate()
            return handled

        if self._ignored_tag is not None:
            if tag == self._ignored_tag:
                self._ignore_depth -= 1
                if self._ignore_depth == 0:
                    self._ignored_tag = None
            return False

        if not self.entered:
            return False

        if self._open_child is None and tag == self.root_tag:
            self.on_seal()
            self.seal()
            return True

        self._open_child = None
        self.add_to_product(self.buffer.consume())
        return True

    def handle_text(self, text: str) -> bool:
        if self.sealed or not isinstance(text, str):
            return False
        delegate = self._active_delegate()
        if delegate is not None:
            return delegate.handle_text(text)
        if self._ignored_tag is not None or not self.entered:
            return False
        self.buffer.append(text)
        return True

    def handle_cdata(self, text: str) -> bool:
        if self.sealed or not isinstance(text, str):
            return False
        delegate = self._active_delegate()
        if delegate is not None:
            return delegate.handle_cdata(text)
        return self.handle_text(text)


NodeFactory = Callable[[str], DecodeNode]


class CollectionDecodeNode(DecodeNode):
    """Decodes a repeated child element into a list.

    Primitive items are converted with ``item_converter``. Complex items are
    built by a delegate from ``item_factory``: one is armed up front, enters
    on the next ``item_tag`` open event, and after it seals its product is
    appended and a fresh delegate for the same tag is armed.
    """

    def __init__(
        self,
        root_tag: str,
        item_tag: Optional[str] = None,
        item_factory: Optional[NodeFactory] = None,
        item_converter: Converter = identity,
    ):
        super().__init__(root_tag, product=None)
        if item_factory is not None and item_tag is None:
            raise ValueError("A complex collection needs the tag of its items")
        self.items: List[Any] = []
        self.item_tag = item_tag
        self.item_factory = item_factory
        self.item_converter = item_converter
        self._arm()

    def _arm(self) -> None:
        if self.item_factory is not None:
            self.assign_delegate(self.item_factory(self.item_tag))

    def decide(self, tag: str, attributes: Attributes) -> bool:
        if self.item_tag is not None and tag != self.item_tag:
            return False
        self.set_target('', self.item_converter)
        return True

    def add_to_product(self, value: Any) -> None:
        super().add_to_product(value)
        self.append_item(value)

    def append_item(self, value: Any) -> None:
        self.items.append(value)

    def absorb_delegate(self) -> None:
        super().absorb_delegate()
        # Drop whitespace collected between items
        self.buffer.reset(self.item_converter)
        self._arm()

    def deliver(self) -> List[Any]:
        if not self.sealed:
            raise ProductWithheldError(self.root_tag)
        return self.items


class FilteringCollectionNode(CollectionDecodeNode):
    """A collection that only keeps items accepted by a predicate.

    Used for the daily dumps, where holding every item would defeat the
    point of streaming.
    """

    def __init__(self, root_tag: str, predicate: Callable[[Any], bool], **kwargs: Any):
        super().__init__(root_tag, **kwargs)
        self.predicate = predicate
        self.seen = 0

    def append_item(self, value: Any) -> None:
        self.seen += 1
        if self.predicate(value):
            self.items.append(value)
