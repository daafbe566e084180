"""Signal resolution and exit status helpers.

Callers name signals the way a shell does ("TERM", "SIGKILL", 9). This module
turns those into ``signal.Signals`` members and converts raw subprocess return
codes into shell-style exit statuses for assertions.
"""

from __future__ import annotations

import signal

from bgharness.core.errors import UnknownSignalError

SignalSpec = str | int | signal.Signals

DEFAULT_STOP_SIGNAL = signal.SIGTERM

# Test runners install their own handlers for these; a child that shares the
# runner's process group may see them twice or not at all.
RUNNER_INTERCEPTED_SIGNALS: frozenset[signal.Signals] = frozenset({
    signal.SIGINT,
    signal.SIGQUIT,
})

# Shell conventions for commands that never started
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


def resolve_signal(spec: SignalSpec) -> signal.Signals:
    """Resolve a signal name or number.

    Accepts "TERM", "term", "SIGTERM", "15", 15 or ``signal.SIGTERM``.

    Raises:
        UnknownSignalError: If the value does not name a signal on this host.
    """
    if isinstance(spec, signal.Signals):
        return spec

    if isinstance(spec, str):
        text = spec.strip().upper()
        if text.isdigit():
            spec = int(text)
        else:
            name = text if text.startswith("SIG") else f"SIG{text}"
            try:
                return signal.Signals[name]
            except KeyError:
                raise UnknownSignalError(f"unknown signal: {spec!r}") from None

    try:
        return signal.Signals(spec)
    except ValueError:
        raise UnknownSignalError(f"unknown signal number: {spec!r}") from None


def get_signal_name(sig_num: int) -> str:
    """Get human-readable signal name, or "signal N" if unknown."""
    try:
        return signal.Signals(sig_num).name
    except ValueError:
        return f"signal {sig_num}"


def exit_status_from_returncode(returncode: int) -> int:
    """Convert a subprocess return code to a shell-style exit status.

    A negative return code means the process was killed by that signal,
    which a shell reports as 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def exit_signal_from_returncode(returncode: int) -> int | None:
    """Signal number that killed the process, or None for a normal exit."""
    if returncode < 0:
        return -returncode
    return None


__all__ = [
    "DEFAULT_STOP_SIGNAL",
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "RUNNER_INTERCEPTED_SIGNALS",
    "SignalSpec",
    "exit_signal_from_returncode",
    "exit_status_from_returncode",
    "get_signal_name",
    "resolve_signal",
]
