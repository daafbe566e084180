"""bgharness command line interface.

Commands:
    check  - report whether required utilities are on PATH
    watch  - follow a file until a line matches a pattern
    run    - launch a command in the background, wait for output, stop it
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from bgharness import __version__

from .commands import check, run, watch
from .helpers import set_global_options
from .output import console

app = typer.Typer(
    name="bgharness",
    help="Run background processes for tests and wait on their output",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"bgharness v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML harness configuration file",
            envvar="BGHARNESS_CONFIG",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option("--log-format", help="Log format: console or json"),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Path for log file output"),
    ] = None,
) -> None:
    """bgharness - background process harness for test suites."""
    set_global_options(config_file, log_level, log_format, log_file)


app.command()(check)
app.command()(watch)
app.command()(run)


__all__ = ["app"]
