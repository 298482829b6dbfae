"""Unified logging system for protodata with CLI output support."""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class ProtodataLogger(logging.Logger):
    """
    Enhanced logger that combines Python logging with CLI formatting methods.

    All output goes to stderr: the protoc plugins reserve stdout for the
    serialized CodeGeneratorResponse.
    """

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        """
        Initialize the protodata logger.

        Args:
            name: Logger name
            level: Initial log level
        """
        super().__init__(name, level)
        self.console = Console(stderr=True)

        handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.addHandler(handler)

    def print(self, message: str) -> None:
        """
        Print a plain message (with Rich markup support).

        Args:
            message: Message to display
        """
        self.console.print(message)

    def colored(self, message: str, style: str = "bold cyan") -> None:
        """
        Print a message with a specific style/color.

        Args:
            message: Message to display
            style: Rich style string (e.g., "green", "red", "bold cyan", "dim")
        """
        self.print(f"[{style}]{message}[/{style}]")

    def success(self, message: str) -> None:
        """
        Print a success message in green with checkmark icon.

        Args:
            message: Message to display
        """
        self.print(f"[green]✓[/green] {message}")

    def hint(self, message: str) -> None:
        """
        Print a dimmed hint/secondary message.

        Args:
            message: Message to display
        """
        self.colored(message, "dim")

    def key_value(self, key: str, value: Any, key_style: str = "dim") -> None:
        """
        Print a formatted key-value pair.

        Args:
            key: The key/label to display
            value: The value to display
            key_style: Style for the key (default: "dim")
        """
        self.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def get_logger(name: str = "protodata") -> ProtodataLogger:
    """
    Get or create a protodata logger instance.

    Args:
        name: Logger name (default: "protodata")

    Returns:
        ProtodataLogger instance
    """
    logging.setLoggerClass(ProtodataLogger)
    logger = logging.getLogger(name)
    logging.setLoggerClass(logging.Logger)

    return logger  # type: ignore[return-value]
