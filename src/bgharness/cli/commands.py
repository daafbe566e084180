"""bgharness CLI commands: check, watch and run.

Exit codes:
  0: Success (utilities present, pattern matched, process stopped)
  1: Failure (utility missing, pattern not seen before the timeout,
     nonzero process status with run --check-status)
  2: Harness error (unknown signal, unusable configuration)
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path

import typer

from bgharness.context import HarnessContext
from bgharness.core.config import HarnessConfig
from bgharness.core.errors import HarnessError
from bgharness.process.watcher import OutputWatcher

from .helpers import load_config
from .output import console, err_console, stop_panel, utilities_table, watch_summary


def check(
    utilities: list[str] = typer.Argument(..., help="Utility names to look up on PATH"),
) -> None:
    """Check that required utilities are installed."""
    found = {name: shutil.which(name) for name in utilities}
    console.print(utilities_table(found))
    if any(location is None for location in found.values()):
        raise typer.Exit(1)


def watch(
    pattern: str = typer.Argument(..., help="Regular expression to wait for"),
    file: Path = typer.Option(..., "--file", "-f", help="Capture buffer to follow"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait (default from config)"
    ),
) -> None:
    """Follow a file until a line matches PATTERN or the timeout expires."""
    config = load_config()
    watcher = OutputWatcher(config)
    result = asyncio.run(
        watcher.wait_for_output(None, pattern, timeout=timeout, capture_path=file)
    )
    console.print(watch_summary(result))
    if not result:
        raise typer.Exit(1)


def run(
    command: list[str] = typer.Argument(..., help="Command and arguments (after --)"),
    wait: str | None = typer.Option(
        None, "--wait", "-w", help="Pattern to wait for before stopping"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for the pattern"
    ),
    linger: float = typer.Option(
        0.0, "--linger", help="Seconds to let the process run before stopping", min=0.0
    ),
    sig: str | None = typer.Option(
        None, "--signal", "-s", help="Signal used to stop the process (default TERM)"
    ),
    root: Path | None = typer.Option(
        None, "--root", help="Directory for the capture buffer (default: a temp dir)"
    ),
    check_status: bool = typer.Option(
        False, "--check-status", help="Fail if the stopped process reports a nonzero exit status"
    ),
) -> None:
    """Launch COMMAND in the background, optionally wait for output, then stop it.

    Without --check-status the exit code only reflects the --wait outcome;
    the process's own exit status is shown but not checked.

    Example:
        bgharness run --wait "listening" -- python -m http.server 0
    """
    config = load_config()
    try:
        if root is not None:
            matched, status = asyncio.run(
                _run(config.with_root(root), command, wait, timeout, linger, sig)
            )
        else:
            with tempfile.TemporaryDirectory(prefix="bgharness-") as tmp:
                matched, status = asyncio.run(
                    _run(config.with_root(Path(tmp)), command, wait, timeout, linger, sig)
                )
    except HarnessError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from None
    if not matched:
        raise typer.Exit(1)
    if check_status and status:
        err_console.print(f"[red]Process exited with status {status}[/red]")
        raise typer.Exit(1)


async def _run(
    config: HarnessConfig,
    command: list[str],
    wait: str | None,
    timeout: float | None,
    linger: float,
    sig: str | None,
) -> tuple[bool, int | None]:
    matched = True
    status: int | None = None
    async with HarnessContext(config=config) as bg:
        await bg.launch(command[0], *command[1:])
        if wait is not None:
            result = await bg.wait_for_output(wait, timeout=timeout)
            console.print(watch_summary(result))
            matched = result.matched
        if linger:
            await asyncio.sleep(linger)
        stopped = await bg.stop(sig)
        if stopped is not None:
            console.print(stop_panel(stopped))
            status = stopped.exit_status
    return matched, status
