"""Commands for running and inspecting Splunk search jobs."""

import typer

from splunkcli.cli.common.context import (
    ConnectionFlags,
    GlobalOptions,
    SearchAppContext,
    build_search_context,
    read_query,
)
from splunkcli.cli.common.exits import die, exit_from_exc
from splunkcli.cli.common.options import (
    AppOpt,
    DebugOpt,
    EarliestOpt,
    FileOpt,
    HostOpt,
    HttpTimeoutOpt,
    InsecureOpt,
    LatestOpt,
    LimitOpt,
    OwnerOpt,
    PasswordOpt,
    SidOpt,
    SplOpt,
    TimeoutOpt,
    TokenOpt,
    UserOpt,
    silent_opt,
)
from splunkcli.core.errors import SplunkError
from splunkcli.core.jobs import JobState, job_status, start_search
from splunkcli.core.results import fetch_results, format_results
from splunkcli.core.runs import run_search


def _context(ctx: typer.Context, flags: ConnectionFlags, *, silent: bool) -> SearchAppContext:
    """Build the search context using the global options of the invocation."""
    global_opts = ctx.obj if isinstance(ctx.obj, GlobalOptions) else None
    return build_search_context(flags, silent=silent, global_opts=global_opts)


def _query_or_exit(spl: str | None, file: str | None) -> str:
    try:
        return read_query(spl, file)
    except ValueError as exc:
        exit_from_exc(exc)


def run(
    ctx: typer.Context,
    spl: str | None = SplOpt,
    file: str | None = FileOpt,
    earliest: str | None = EarliestOpt,
    latest: str | None = LatestOpt,
    timeout: str | None = TimeoutOpt,
    silent: bool = silent_opt(False),
    host: str | None = HostOpt,
    token: str | None = TokenOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    app: str | None = AppOpt,
    owner: str | None = OwnerOpt,
    insecure: bool = InsecureOpt,
    http_timeout: str | None = HttpTimeoutOpt,
    debug: bool = DebugOpt,
    limit: int | None = LimitOpt,
):
    """
    Run a search, wait for it to finish and print its results.

    Press Ctrl+C while waiting to cancel the job or detach from it.
    """
    query = _query_or_exit(spl, file)
    flags = ConnectionFlags(
        host, token, user, password, app, owner, insecure, http_timeout, debug, limit, timeout
    )
    appctx = _context(ctx, flags, silent=silent)

    try:
        outcome = run_search(
            appctx.adapter,
            query,
            earliest=earliest,
            latest=latest,
            timeout=appctx.config.timeout,
            limit=appctx.config.limit,
            log=appctx.log,
        )
    except SplunkError as exc:
        exit_from_exc(exc)

    if outcome.state == JobState.DONE and outcome.results is not None:
        typer.echo(format_results(outcome.results))


def start(
    ctx: typer.Context,
    spl: str | None = SplOpt,
    file: str | None = FileOpt,
    earliest: str | None = EarliestOpt,
    latest: str | None = LatestOpt,
    silent: bool = silent_opt(True),
    host: str | None = HostOpt,
    token: str | None = TokenOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    app: str | None = AppOpt,
    owner: str | None = OwnerOpt,
    insecure: bool = InsecureOpt,
    http_timeout: str | None = HttpTimeoutOpt,
    debug: bool = DebugOpt,
    limit: int | None = LimitOpt,
):
    """
    Start a search job and print its SID.
    """
    query = _query_or_exit(spl, file)
    flags = ConnectionFlags(
        host, token, user, password, app, owner, insecure, http_timeout, debug, limit
    )
    appctx = _context(ctx, flags, silent=silent)

    try:
        sid = start_search(appctx.adapter, query, earliest, latest, appctx.log)
    except SplunkError as exc:
        exit_from_exc(exc)
    typer.echo(sid)


def status(
    ctx: typer.Context,
    sid: str = SidOpt,
    host: str | None = HostOpt,
    token: str | None = TokenOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    app: str | None = AppOpt,
    owner: str | None = OwnerOpt,
    insecure: bool = InsecureOpt,
    http_timeout: str | None = HttpTimeoutOpt,
    debug: bool = DebugOpt,
    limit: int | None = LimitOpt,
):
    """
    Show the status of a search job.
    """
    flags = ConnectionFlags(
        host, token, user, password, app, owner, insecure, http_timeout, debug, limit
    )
    appctx = _context(ctx, flags, silent=False)

    try:
        st = job_status(appctx.adapter, sid)
    except SplunkError as exc:
        exit_from_exc(exc)

    typer.echo(f"SID: {st.sid}")
    typer.echo(f"IsDone: {str(st.is_done).lower()}")
    typer.echo(f"DispatchState: {st.dispatch_state}")
    typer.echo(f"ResultCount: {st.result_count}")
    for msg in st.messages:
        appctx.log.info(f"{msg.type}: {msg.text}")


def results(
    ctx: typer.Context,
    sid: str = SidOpt,
    silent: bool = silent_opt(False),
    host: str | None = HostOpt,
    token: str | None = TokenOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    app: str | None = AppOpt,
    owner: str | None = OwnerOpt,
    insecure: bool = InsecureOpt,
    http_timeout: str | None = HttpTimeoutOpt,
    debug: bool = DebugOpt,
    limit: int | None = LimitOpt,
):
    """
    Fetch the results of a finished search job.
    """
    flags = ConnectionFlags(
        host, token, user, password, app, owner, insecure, http_timeout, debug, limit
    )
    appctx = _context(ctx, flags, silent=silent)

    try:
        st = job_status(appctx.adapter, sid)
        if not st.is_done:
            die(f"job {sid} is not complete yet (state: {st.dispatch_state})")
        if st.failed:
            die(f"cannot get results, job {sid} failed")

        appctx.log.info("Fetching results...")
        payload = fetch_results(appctx.adapter, sid, appctx.config.limit, appctx.log)
    except SplunkError as exc:
        exit_from_exc(exc)

    typer.echo(format_results(payload))
