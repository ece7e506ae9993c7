"""CLI application for running Splunk searches."""

from pathlib import Path

import typer

from splunkcli.cli.commands import search
from splunkcli.cli.common.context import GlobalOptions
from splunkcli.cli.common.options import ConfigOpt
from splunkcli.core.config import build_info

app = typer.Typer(
    help="splunk-cli - run Splunk searches from the command line",
    no_args_is_help=True,
)

app.command("run")(search.run)
app.command("start")(search.start)
app.command("status")(search.status)
app.command("results")(search.results)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(build_info().render())
        raise typer.Exit(0)


@app.callback()
def _init(
    ctx: typer.Context,
    config: Path | None = ConfigOpt,
    version: bool = typer.Option(
        False,
        "--version",
        help="Print version information and exit",
        callback=_print_version,
        is_eager=True,
    ),
):
    """Run Splunk searches: run, start, status, results."""
    ctx.obj = GlobalOptions(config_path=config)


if __name__ == "__main__":
    app()
