"""Interface for presenting results to the user.

Defines the contract for displaying records, plain text, information and
errors, allowing different UI implementations (e.g., console, tests).
"""

import abc
from typing import Any

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_record(self, record: Any, **kwargs: Any) -> None:
        """Displays a decoded API result.

        Args:
            record: The decoded product (dict, list or scalar).
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays plain text output to the user."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
