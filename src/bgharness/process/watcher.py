"""Wait for a background process to print an expected line.

The watcher follows the capture buffer the way ``tail -f`` does: at the end
of the file it sleeps and retries instead of stopping, because the producing
process is still alive and may write more. The follow-read is raced against
the timeout with ``asyncio.wait_for``; on expiry the read is cancelled, the
process is left running, and the failure carries the whole buffer so far.

Lines are read in write order and each completed line is tested before the
next is read, so an early match is never skipped.
"""

from __future__ import annotations

import asyncio
import re
import sys
from collections.abc import AsyncIterator
from contextlib import aclosing
from pathlib import Path
from typing import TextIO

from bgharness.core.config import HarnessConfig
from bgharness.core.errors import WatchSessionActiveError
from bgharness.core.logging import get_logger
from bgharness.process.handle import (
    BackgroundProcess,
    WatchOutcome,
    WatchResult,
    WatchSession,
)

_logger = get_logger("watcher")

MSG_NOT_LAUNCHED = "process not launched"
MSG_NO_PATTERN = "pattern not specified"
MSG_INVALID_PATTERN = "invalid pattern"


async def follow_lines(
    path: Path,
    poll_interval: float = 0.05,
    session: WatchSession | None = None,
) -> AsyncIterator[str]:
    """Yield completed lines appended to ``path``, waiting for more forever.

    A trailing partial line is held back until its newline arrives. If the
    file does not exist yet, waits for it to appear. When a session is given
    its ``read_cursor`` tracks the byte offset consumed so far.

    The iterator never ends on its own; cancel the consuming task or close
    the generator to stop it.
    """
    while not path.exists():
        await asyncio.sleep(poll_interval)

    offset = session.read_cursor if session is not None else 0
    pending = b""
    with open(path, "rb") as f:
        f.seek(offset)
        while True:
            chunk = f.readline()
            if not chunk:
                await asyncio.sleep(poll_interval)
                continue
            pending += chunk
            if not pending.endswith(b"\n"):
                continue
            offset += len(pending)
            if session is not None:
                session.read_cursor = offset
            line = pending[:-1].decode("utf-8", errors="replace")
            pending = b""
            yield line


class OutputWatcher:
    """Blocks a test until its background process prints a matching line.

    Usage:
        watcher = OutputWatcher(config)
        result = await watcher.wait_for_output(handle, r"listening on \\d+")
        assert result, result.message
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            config: Harness settings (default timeout, poll interval).
            stream: Where failure diagnostics are written. Defaults to the
                current ``sys.stderr`` at report time.
        """
        self.config = config or HarnessConfig()
        self._stream = stream
        # Active session of a watch that follows a capture override with no
        # process handle to hold it
        self._detached_session: WatchSession | None = None

    async def wait_for_output(
        self,
        handle: BackgroundProcess | None,
        pattern: str,
        timeout: float | None = None,
        capture_path: Path | str | None = None,
    ) -> WatchResult:
        """Wait until a line matching ``pattern`` appears in the capture buffer.

        Args:
            handle: The launched process. May be None when ``capture_path``
                names the buffer to follow.
            pattern: Regular expression searched for in each line.
            timeout: Seconds to wait (default from config, 3s).
            capture_path: Follow this buffer instead of the handle's.

        Returns:
            A truthy WatchResult on a match; a falsy one on timeout or when a
            precondition is not met, including a pattern that does not compile.

        Raises:
            WatchSessionActiveError: If another watch on the same handle (or,
                with no handle, on this watcher) is still in progress.
        """
        if timeout is None:
            timeout = self.config.default_timeout

        if capture_path is not None:
            path = Path(capture_path)
        elif handle is not None and handle.is_launched:
            path = handle.capture_path
        else:
            return self._precondition_failure(WatchOutcome.NOT_LAUNCHED, pattern, MSG_NOT_LAUNCHED)

        if not pattern:
            return self._precondition_failure(WatchOutcome.NO_PATTERN, pattern, MSG_NO_PATTERN)

        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            return self._precondition_failure(
                WatchOutcome.INVALID_PATTERN, pattern, f"{MSG_INVALID_PATTERN}: {pattern!r} ({exc})"
            )

        active = handle.watch_session if handle is not None else self._detached_session
        if active is not None:
            owner = f"pid {handle.pid}" if handle is not None else str(active.capture_path)
            raise WatchSessionActiveError(
                f"already waiting for {active.pattern.pattern!r} on {owner}"
            )

        session = WatchSession(pattern=compiled, timeout=timeout, capture_path=path)
        self._claim(handle, session)
        try:
            return await self._run_session(session)
        finally:
            self._claim(handle, None)

    def _claim(self, handle: BackgroundProcess | None, session: WatchSession | None) -> None:
        if handle is not None:
            handle.watch_session = session
        else:
            self._detached_session = session

    async def _run_session(self, session: WatchSession) -> WatchResult:
        pattern = session.pattern.pattern
        try:
            line = await asyncio.wait_for(self._scan(session), timeout=session.timeout)
        except TimeoutError:
            return self._timeout_failure(session)

        _logger.debug(
            "watch.matched",
            pattern=pattern,
            line=line,
            elapsed_seconds=session.elapsed,
        )
        return WatchResult(
            outcome=WatchOutcome.MATCHED,
            pattern=pattern,
            line=line,
            message=f"matched {pattern!r}",
            elapsed_seconds=session.elapsed,
            capture_path=session.capture_path,
        )

    async def _scan(self, session: WatchSession) -> str:
        """Return the first followed line the session's pattern matches."""
        lines = follow_lines(session.capture_path, self.config.poll_interval, session)
        async with aclosing(lines):
            async for line in lines:
                if session.pattern.search(line):
                    return line
        raise RuntimeError("follow-read ended before a match")  # pragma: no cover

    def _timeout_failure(self, session: WatchSession) -> WatchResult:
        pattern = session.pattern.pattern
        output = read_capture(session.capture_path)
        message = (
            f"pattern {pattern!r} not found in {session.capture_path} "
            f"within {session.timeout:g}s\n"
            f"--- output so far ---\n{output}"
        )
        if output and not output.endswith("\n"):
            message += "\n"
        message += "--- end of output ---"
        self._report(message)
        _logger.warning(
            "watch.timeout",
            pattern=pattern,
            timeout_seconds=session.timeout,
            output_bytes=len(output),
        )
        return WatchResult(
            outcome=WatchOutcome.TIMEOUT,
            pattern=pattern,
            message=message,
            output=output,
            elapsed_seconds=session.elapsed,
            capture_path=session.capture_path,
        )

    def _precondition_failure(
        self, outcome: WatchOutcome, pattern: str, message: str
    ) -> WatchResult:
        self._report(message)
        _logger.warning("watch.precondition_failed", reason=outcome.value)
        return WatchResult(outcome=outcome, pattern=pattern, message=message)

    def _report(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        print(message, file=stream)


def read_capture(path: Path) -> str:
    """Entire capture buffer as text, or "" if it does not exist."""
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except FileNotFoundError:
        return ""


__all__ = [
    "MSG_INVALID_PATTERN",
    "MSG_NOT_LAUNCHED",
    "MSG_NO_PATTERN",
    "OutputWatcher",
    "follow_lines",
    "read_capture",
]
