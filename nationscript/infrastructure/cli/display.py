import logging
from typing import Any

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text

from nationscript.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Console = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_record(self, record: Any, **kwargs: Any) -> None:
        """Displays a decoded API result.

        Flat dicts are rendered as a two-column table; anything nested is
        pretty-printed.

        Args:
            record: The decoded product.
            **kwargs: ``title`` for the surrounding panel.
        """
        title = kwargs.get("title", "Result")
        logger.debug(f"display_record called: title={title}, type={type(record).__name__}")

        if isinstance(record, dict) and record and not any(isinstance(v, (dict, list)) for v in record.values()):
            table = Table(show_header=False, box=SIMPLE, padding=(0, 1))
            table.add_column("Field", style="bold cyan")
            table.add_column("Value", style="white")
            for key, value in record.items():
                table.add_row(str(key), str(value))
            body = table
        else:
            body = Pretty(record, expand_all=False)

        self.console.print(Panel(
            body,
            title=f"[bold white]{title}[/bold white]",
            title_align="left",
            border_style="blue",
            box=ROUNDED,
            padding=(0, 1),
        ))

    def display_output(self, output: str, **kwargs: Any) -> None:
        self.console.print(Text(str(output)))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
