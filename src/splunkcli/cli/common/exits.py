"""Exit handling utilities for the CLI."""

from typing import NoReturn

import typer

from splunkcli.cli.common.output import out


def die(msg: str, code: int = 1) -> NoReturn:
    """Exit with an error message and optional exit code."""
    out.error(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str | None = None, code: int = 1) -> NoReturn:
    """
    Print an error message for `exc` and exit with a given code.

    Keeps the original exception chained for tracebacks in debug sessions.
    """
    out.error(message or str(exc))
    raise typer.Exit(code) from exc
