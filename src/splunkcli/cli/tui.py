"""Terminal prompts for splunk-cli."""

from __future__ import annotations

import questionary

from splunkcli.cli.common.tui_style import QUESTIONARY_STYLE_SECRET
from splunkcli.core.config import ConnectionConfig


def _ask_secret(message: str) -> str:
    """Ask for a hidden value; an aborted prompt yields an empty string."""
    answer = questionary.password(message, style=QUESTIONARY_STYLE_SECRET).ask()
    return (answer or "").strip()


def prompt_for_credentials(cfg: ConnectionConfig) -> ConnectionConfig:
    """
    Ask for missing credentials.

    Without a user a token is requested; with a user but no password the
    password is requested. Complete configurations are returned unchanged.
    """
    if cfg.has_credentials:
        return cfg
    if not cfg.user:
        return cfg.with_overrides(token=_ask_secret("Enter Splunk authentication token:"))
    return cfg.with_overrides(password=_ask_secret(f"Enter Splunk password for '{cfg.user}':"))
