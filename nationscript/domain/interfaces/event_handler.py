"""Interface for consumers of markup parser events.

A markup source reports every element boundary and text run to a handler
implementing this contract. After ``on_end`` or ``on_error`` the source
emits nothing further.
"""

import abc
from typing import Dict

class MarkupEventHandler(abc.ABC):
    """Abstract Base Class for receiving streamed markup events."""

    @abc.abstractmethod
    def on_open(self, tag: str, attributes: Dict[str, str]) -> None:
        """Called for every start tag, with its attributes."""
        pass

    @abc.abstractmethod
    def on_close(self, tag: str) -> None:
        """Called for every end tag (also for self-closing elements)."""
        pass

    @abc.abstractmethod
    def on_text(self, text: str) -> None:
        """Called for character data; one text node may arrive in several chunks."""
        pass

    @abc.abstractmethod
    def on_cdata(self, text: str) -> None:
        """Called for the content of a CDATA section."""
        pass

    @abc.abstractmethod
    def on_error(self, cause: BaseException) -> None:
        """Called once when the input is found to be malformed."""
        pass

    @abc.abstractmethod
    def on_end(self) -> None:
        """Called once when the input was consumed completely."""
        pass
