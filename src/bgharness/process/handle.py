"""Data model for background processes and their results.

A ``BackgroundProcess`` is the explicit handle returned by the launcher and
threaded through the watcher and reaper. ``WatchResult`` and ``StopResult``
carry outcomes back to the test.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from bgharness.core.errors import OutputWaitError


class LifecycleState(str, Enum):
    """Lifecycle of a background process handle."""

    LAUNCHED = "launched"
    STOPPED = "stopped"


class WatchOutcome(str, Enum):
    """Why a wait_for_output call returned."""

    MATCHED = "matched"
    TIMEOUT = "timeout"
    NOT_LAUNCHED = "not_launched"
    NO_PATTERN = "no_pattern"
    INVALID_PATTERN = "invalid_pattern"


@dataclass
class WatchSession:
    """One bounded attempt to observe a pattern in a capture buffer.

    ``read_cursor`` is the byte offset of the next unread line.
    """

    pattern: re.Pattern[str]
    timeout: float
    capture_path: Path
    read_cursor: int = 0
    started_at: float = field(default_factory=time.monotonic)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


@dataclass
class BackgroundProcess:
    """Handle for a process launched in the background.

    Attributes:
        argv: Command and arguments as launched.
        capture_path: File receiving the merged stdout/stderr.
        process: The running subprocess, or None if it failed to spawn.
        spawn_error: The OS error raised while spawning, if any.
        state: LAUNCHED until the reaper stops the process.
    """

    argv: list[str]
    capture_path: Path
    process: asyncio.subprocess.Process | None = None
    spawn_error: OSError | None = None
    state: LifecycleState = LifecycleState.LAUNCHED
    started_at: float = field(default_factory=time.monotonic)
    watch_session: WatchSession | None = field(default=None, repr=False)

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None

    @property
    def is_launched(self) -> bool:
        return self.state is LifecycleState.LAUNCHED

    @property
    def is_running(self) -> bool:
        """Whether the OS process has not yet been reaped."""
        return (
            self.is_launched
            and self.process is not None
            and self.process.returncode is None
        )


@dataclass
class WatchResult:
    """Outcome of a wait_for_output call. Truthy only on a match."""

    outcome: WatchOutcome
    pattern: str
    message: str = ""
    line: str | None = None
    output: str = ""
    elapsed_seconds: float = 0.0
    capture_path: Path | None = None

    @property
    def matched(self) -> bool:
        return self.outcome is WatchOutcome.MATCHED

    def __bool__(self) -> bool:
        return self.matched

    def raise_for_failure(self) -> WatchResult:
        """Raise OutputWaitError unless the pattern matched.

        Returns self so calls can be chained.
        """
        if not self.matched:
            raise OutputWaitError(self)
        return self


@dataclass
class StopResult:
    """Exit status and captured output of a stopped process.

    Attributes:
        exit_status: Shell-style status: the exit code, or 128 + N when the
            process died from signal N.
        raw_output: Entire capture buffer decoded as UTF-8.
        lines: raw_output split on newlines with empty lines preserved.
        raw_bytes: Entire capture buffer as written by the child.
        returncode: Raw subprocess return code (negative for signals),
            None if the process never started.
        exit_signal: Signal that killed the process, if any.
        signal_sent: Signal number delivered by stop(), None if the process
            never started.
        duration_seconds: Time from launch to reaping.
    """

    exit_status: int
    raw_output: str
    lines: list[str]
    raw_bytes: bytes = b""
    returncode: int | None = None
    exit_signal: int | None = None
    signal_sent: int | None = None
    duration_seconds: float = 0.0


def split_output_lines(text: str) -> list[str]:
    """Split captured output into lines, preserving empty lines.

    One trailing newline terminates the last line and does not produce an
    extra empty entry; any other empty line is kept.

    >>> split_output_lines("a\\n\\nb\\n")
    ['a', '', 'b']
    >>> split_output_lines("a\\n\\n")
    ['a', '']
    """
    if not text:
        return []
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


__all__ = [
    "BackgroundProcess",
    "LifecycleState",
    "StopResult",
    "WatchOutcome",
    "WatchResult",
    "WatchSession",
    "split_output_lines",
]
