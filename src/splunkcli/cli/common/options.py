"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    None,
    "--config",
    help="Path to a custom configuration file",
    dir_okay=False,
)

HostOpt = typer.Option(
    None,
    "--host",
    help="Splunk server URL (or use SPLUNK_HOST env var)",
)

TokenOpt = typer.Option(
    None,
    "--token",
    help="Splunk authentication token (or use SPLUNK_TOKEN env var)",
)

UserOpt = typer.Option(
    None,
    "--user",
    help="Splunk username (or use SPLUNK_USER env var)",
)

PasswordOpt = typer.Option(
    None,
    "--password",
    help="Splunk password (or use SPLUNK_PASSWORD env var)",
)

AppOpt = typer.Option(
    None,
    "--app",
    help="App context for the search (or use SPLUNK_APP env var)",
)

OwnerOpt = typer.Option(
    None,
    "--owner",
    help="Owner of the app context (default: nobody)",
)

InsecureOpt = typer.Option(
    False,
    "--insecure",
    help="Skip TLS certificate verification",
)

HttpTimeoutOpt = typer.Option(
    None,
    "--http-timeout",
    help="Timeout for individual HTTP requests (e.g. '5s', '1m')",
)

DebugOpt = typer.Option(
    False,
    "--debug",
    help="Enable verbose debug logging",
)

LimitOpt = typer.Option(
    None,
    "--limit",
    help="Maximum number of results to return (0 for all)",
    min=0,
)

SplOpt = typer.Option(
    None,
    "--spl",
    help="SPL query to execute",
)

FileOpt = typer.Option(
    None,
    "--file",
    "-f",
    help="Read SPL query from a file (use '-' for stdin)",
    show_default=False,
)

EarliestOpt = typer.Option(
    None,
    "--earliest",
    help="Search earliest time (e.g. -1h, @d, 1672531200)",
)

LatestOpt = typer.Option(
    None,
    "--latest",
    help="Search latest time (e.g. now, @d, 1672617600)",
)

TimeoutOpt = typer.Option(
    None,
    "--timeout",
    help="Total timeout for the run command (e.g. '30s', '10m'; 0 waits forever; default 10m)",
)

SidOpt = typer.Option(
    ...,
    "--sid",
    help="Search ID (SID) of the job",
)


def silent_opt(default: bool):
    """Return a --silent/--no-silent option with a per-command default."""
    return typer.Option(
        default,
        "--silent/--no-silent",
        help="Suppress progress messages",
    )
