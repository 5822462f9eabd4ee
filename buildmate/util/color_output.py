#!/usr/bin/env python3
"""
Cross-platform colored terminal output utilities.

Every user-facing line buildmate prints goes through here, using the Rich
library for consistent formatting across Windows, macOS, and Linux.
"""

from typing import Optional

from rich.console import Console
from rich.text import Text


class ColorOutput:
    """
    Platform-neutral colored terminal output using Rich library.

    Provides methods for printing colored text with consistent formatting
    across different operating systems and terminals.
    """

    def __init__(
        self, force_terminal: Optional[bool] = None, stderr: bool = False
    ) -> None:
        """
        Initialize ColorOutput.

        Args:
            force_terminal: Force terminal mode (True/False) or auto-detect (None)
            stderr: Write to stderr instead of stdout
        """
        # highlight=False keeps Rich from recoloring numbers and paths in diagnostics
        self.console = Console(
            force_terminal=force_terminal, stderr=stderr, highlight=False
        )

    def print(self, message: str = "", style: Optional[str] = None) -> None:
        self.console.print(message, style=style, markup=False)

    def print_green(self, message: str) -> None:
        self.print(message, "green")

    def print_yellow(self, message: str) -> None:
        self.print(message, "yellow")

    def print_red(self, message: str) -> None:
        self.print(message, "red")

    def print_blue(self, message: str) -> None:
        self.print(message, "blue")

    def print_cyan(self, message: str) -> None:
        self.print(message, "cyan")

    def print_dim(self, message: str) -> None:
        self.print(message, "dim")

    def print_heading(self, message: str, color: str = "white") -> None:
        """Print a bold section heading in the given color."""
        self.print(message, f"bold {color}")

    def print_rule(self, style: str = "blue", width: int = 60) -> None:
        self.print("═" * width, style)

    def print_labeled(self, label: str, message: str, label_style: str) -> None:
        """Print a styled label followed by plain text on one line."""
        text = Text()
        text.append(label, style=label_style)
        text.append(message)
        self.console.print(text)


# Global instances for easy access
_color_output = ColorOutput()
_color_error = ColorOutput(stderr=True)


def print_plain(message: str = "") -> None:
    _color_output.print(message)


def print_green(message: str) -> None:
    _color_output.print_green(message)


def print_yellow(message: str) -> None:
    _color_output.print_yellow(message)


def print_red(message: str) -> None:
    _color_output.print_red(message)


def print_blue(message: str) -> None:
    _color_output.print_blue(message)


def print_cyan(message: str) -> None:
    _color_output.print_cyan(message)


def print_dim(message: str) -> None:
    _color_output.print_dim(message)


def print_heading(message: str, color: str = "white") -> None:
    _color_output.print_heading(message, color)


def print_rule(style: str = "blue", width: int = 60) -> None:
    _color_output.print_rule(style, width)


def print_labeled(label: str, message: str, label_style: str) -> None:
    _color_output.print_labeled(label, message, label_style)


def eprint_red(message: str) -> None:
    """Print an error line in red on stderr."""
    _color_error.print_red(message)
