"""Application context management for the CLI."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

from splunkcli.cli.common.exits import die, exit_from_exc
from splunkcli.cli.common.output import ConsoleLogger, out
from splunkcli.cli.tui import prompt_for_credentials
from splunkcli.core.adapters.splunkjobs import SplunkJobsAdapter
from splunkcli.core.config import (
    ConnectionConfig,
    apply_env,
    load_config_file,
    parse_duration,
)
from splunkcli.core.errors import ConfigurationError


@dataclass(frozen=True)
class GlobalOptions:
    """Options given before the command name."""

    config_path: Path | None = None


@dataclass(frozen=True)
class ConnectionFlags:
    """Connection-related command-line flags; None means "not given"."""

    host: str | None = None
    token: str | None = None
    user: str | None = None
    password: str | None = None
    app: str | None = None
    owner: str | None = None
    insecure: bool = False
    http_timeout: str | None = None
    debug: bool = False
    limit: int | None = None
    timeout: str | None = None


@dataclass
class SearchAppContext:
    """Application context holding the resolved config, logger and jobs adapter."""

    config: ConnectionConfig
    log: ConsoleLogger
    adapter: SplunkJobsAdapter


def resolve_config(
    flags: ConnectionFlags,
    config_path: Path | None = None,
    log: ConsoleLogger | None = None,
) -> ConnectionConfig:
    """
    Resolve the connection configuration.

    Layers, later wins: defaults, config file, SPLUNK_* environment, flags.
    An unreadable config file only produces a warning.
    """
    log = log or ConsoleLogger()
    try:
        cfg, _ = load_config_file(config_path)
    except ConfigurationError as exc:
        log.warn(f"Warning: could not load config file: {exc}")
        cfg = ConnectionConfig()

    cfg = apply_env(cfg)

    http_timeout = None
    if flags.http_timeout is not None:
        try:
            http_timeout = parse_duration(flags.http_timeout)
        except ValueError as exc:
            die(f"invalid --http-timeout: {exc}", code=2)

    timeout = None
    if flags.timeout is not None:
        try:
            timeout = parse_duration(flags.timeout)
        except ValueError as exc:
            die(f"invalid --timeout: {exc}", code=2)

    return cfg.with_overrides(
        host=flags.host,
        token=flags.token,
        user=flags.user,
        password=flags.password,
        app=flags.app,
        owner=flags.owner,
        insecure=True if flags.insecure else None,
        http_timeout=http_timeout,
        timeout=timeout,
        limit=flags.limit,
        debug=True if flags.debug else None,
    )


def build_search_context(
    flags: ConnectionFlags,
    *,
    silent: bool,
    global_opts: GlobalOptions | None = None,
) -> SearchAppContext:
    """Build and return the application context with config, logger and adapter.

    Args:
        flags: Connection flags given on the command line.
        silent: Suppress progress messages.
        global_opts: Options given before the command name.

    Returns:
        SearchAppContext: Application context with a ready-to-use adapter.
    """
    global_opts = global_opts or GlobalOptions()
    cfg = resolve_config(flags, global_opts.config_path, ConsoleLogger(silent=silent))
    if not cfg.host:
        die("--host is required", code=1)

    cfg = prompt_for_credentials(cfg)
    log = ConsoleLogger(silent=silent, verbose=cfg.debug)
    if cfg.debug:
        out.header("Final configuration:")
        out.kv(cfg.masked(), prefix="  ")

    try:
        adapter = SplunkJobsAdapter(cfg, log=log)
    except ConfigurationError as exc:
        exit_from_exc(exc)
    return SearchAppContext(config=cfg, log=log, adapter=adapter)


def read_query(spl: str | None, file: str | None) -> str:
    """
    Return the SPL query from --spl or --file ('-' reads stdin).

    Raises:
        ValueError: If both or neither are given, or the file cannot be read.
    """
    if spl and file:
        raise ValueError("--spl and --file flags cannot be used at the same time")
    if spl:
        return spl
    if file:
        try:
            return sys.stdin.read() if file == "-" else Path(file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"failed to read SPL from file '{file}': {exc}") from exc
    raise ValueError("--spl or --file flag is required")
