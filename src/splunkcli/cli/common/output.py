"""Output formatting utilities for the CLI.

Everything here writes to stderr: stdout is reserved for SIDs, status lines
and result sets so they can be piped into other tools.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

_THEME = Theme(
    {
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME, stderr=True)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages."""

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {escape(msg)}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{escape(title)}[/]")

    def kv(self, items: Mapping[str, Any], *, prefix: str = "") -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"{prefix}[meta]{escape(str(k))}[/]: {escape(str(v))}")


out = Out()


@dataclass(frozen=True)
class ConsoleLogger:
    """
    Logger implementation writing through the rich stderr console.

    Attributes:
        silent: Suppress progress (info) lines.
        verbose: Show debug lines; also re-enables progress lines.
    """

    silent: bool = False
    verbose: bool = False

    def debug(self, msg: str) -> None:
        """Print a debug line when verbose."""
        if self.verbose:
            console.print(f"[meta]DEBUG: {escape(msg)}[/]", highlight=False)

    def info(self, msg: str) -> None:
        """Print a progress line unless silent."""
        if self.verbose or not self.silent:
            console.print(f"[meta]›[/] {escape(msg)}", highlight=False)

    def warn(self, msg: str) -> None:
        """Print a line that is always shown."""
        console.print(f"[warn]⚠ {escape(msg)}[/]", highlight=False)

    def error(self, msg: str) -> None:
        """Print an error line."""
        out.error(msg)

    def prompt(self, msg: str) -> None:
        """Print a question without a trailing newline; always shown."""
        console.print(f"[warn]{escape(msg)}[/]", end="", highlight=False)
