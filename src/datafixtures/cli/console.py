"""Styled console output for CLI commands, built on rich."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

THEME = Theme(
    {
        "info": "green",
        "comment": "yellow",
        "warning": "black on yellow",
        "error": "white on red",
    }
)


class ConsoleStyle:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(theme=THEME, highlight=False, soft_wrap=True)

    def text(self, message: str) -> None:
        """Print a line of text. ``message`` may contain rich markup."""
        self.console.print(f" {message}")

    def _block(self, label: str, style: str, message: str) -> None:
        self.console.print()
        self.console.print(f"[{style}] {escape(f'[{label}]')} {escape(message)} [/{style}]")
        self.console.print()

    def warning(self, message: str) -> None:
        self._block("WARNING", "warning", message)

    def error(self, message: str) -> None:
        self._block("ERROR", "error", message)
