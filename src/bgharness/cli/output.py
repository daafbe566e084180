"""Rich output formatting for the bgharness CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bgharness.core.signals import get_signal_name
from bgharness.process.handle import StopResult, WatchResult

# Commands print results here; diagnostics and logs go to stderr.
console = Console()
err_console = Console(stderr=True)


def utilities_table(found: dict[str, str | None]) -> Table:
    """Table of utility names and where they resolved."""
    table = Table(title="Utilities", show_header=True, header_style="bold")
    table.add_column("Utility")
    table.add_column("Location")
    for name, location in found.items():
        if location is None:
            table.add_row(name, Text("missing", style="red"))
        else:
            table.add_row(name, Text(location, style="green"))
    return table


def watch_summary(result: WatchResult) -> Text:
    if result.matched:
        return Text.assemble(
            ("matched ", "green"),
            (repr(result.pattern), "bold"),
            f" after {result.elapsed_seconds:.2f}s: ",
            (result.line or "", "cyan"),
        )
    return Text(result.message.splitlines()[0] if result.message else result.outcome.value, style="red")


def stop_panel(result: StopResult) -> Panel:
    """Panel showing exit status and captured lines of a stopped process."""
    status_style = "green" if result.exit_status == 0 else "yellow"
    body = Text()
    body.append("exit status: ")
    body.append(str(result.exit_status), style=status_style)
    if result.exit_signal is not None:
        body.append(f" ({get_signal_name(result.exit_signal)})")
    body.append(f"\nduration: {result.duration_seconds:.2f}s\n")
    body.append(f"lines: {len(result.lines)}\n")
    for line in result.lines:
        body.append(f"  {line}\n", style="dim")
    return Panel(body, title="Background process", expand=False)


__all__ = ["console", "err_console", "stop_panel", "utilities_table", "watch_summary"]
