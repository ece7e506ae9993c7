"""Operator input for interactive decisions while a search is running."""

from __future__ import annotations

import sys
from typing import TextIO

from splunkcli.core.log import NULL_LOGGER, Logger

TTY_PATH = "/dev/tty"

CHOICE_PROMPT = (
    "\n^C detected. What would you like to do?\n"
    "  (c)ancel the job on Splunk\n"
    "  (d)etach and let it run in the background\n"
    "Choice [c/d]: "
)


def read_choice_from_tty(
    log: Logger = NULL_LOGGER,
    tty_path: str = TTY_PATH,
    stdin: TextIO | None = None,
) -> str:
    """
    Read one line from the controlling terminal, bypassing stdin.

    Stdin may be a pipe carrying the query text, so the terminal device is
    opened directly. Falls back to stdin when no terminal can be opened
    (Windows, daemons, CI).
    """
    stdin = stdin or sys.stdin
    if sys.platform == "win32":
        return stdin.readline().strip()
    try:
        with open(tty_path, encoding="utf-8") as tty:
            return tty.readline().strip()
    except OSError as exc:
        log.warn(f"could not open {tty_path}, falling back to stdin: {exc}")
        return stdin.readline().strip()


def prompt_cancel_or_detach(sid: str, log: Logger = NULL_LOGGER) -> str:
    """Show the cancel/detach prompt for a job and return the operator's answer."""
    log.prompt(CHOICE_PROMPT)
    return read_choice_from_tty(log)
