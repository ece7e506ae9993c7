"""Logging capability handed to core operations.

Core functions never print. They receive a Logger and write progress and
diagnostics through it, so frontends decide where (and whether) lines go.
"""

from typing import Protocol


class Logger(Protocol):
    """Leveled sink for progress and diagnostic lines."""

    def debug(self, msg: str) -> None:
        """Write a debug line (only shown in debug mode)."""
        ...

    def info(self, msg: str) -> None:
        """Write a progress line (suppressed when silent)."""
        ...

    def warn(self, msg: str) -> None:
        """Write a line the operator must see, even when silent."""
        ...

    def error(self, msg: str) -> None:
        """Write an error line."""
        ...

    def prompt(self, msg: str) -> None:
        """Write a question for the operator, leaving the cursor on its last line."""
        ...


class NullLogger:
    """Logger that discards everything."""

    def debug(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warn(self, msg: str) -> None:
        pass

    def error(self, msg: str) -> None:
        pass

    def prompt(self, msg: str) -> None:
        pass


NULL_LOGGER = NullLogger()
