"""Stop background processes and harvest their results.

Stopping sends a signal, waits for the process to exit, reads the whole
capture buffer, deletes it, and marks the handle STOPPED. Signalling a
process that already exited is not an error: its real exit status is
reported as-is.
"""

from __future__ import annotations

import asyncio
import signal
import time

from bgharness.core.config import HarnessConfig
from bgharness.core.logging import get_logger
from bgharness.core.signals import (
    RUNNER_INTERCEPTED_SIGNALS,
    SignalSpec,
    exit_signal_from_returncode,
    exit_status_from_returncode,
    resolve_signal,
)
from bgharness.process.handle import (
    BackgroundProcess,
    LifecycleState,
    StopResult,
    split_output_lines,
)
from bgharness.process.launcher import spawn_failure_status

_logger = get_logger("reaper")


class ProcessReaper:
    """Terminates a background process and collects its output.

    Usage:
        reaper = ProcessReaper(config)
        result = await reaper.stop(handle)
        assert result.exit_status == 0
        assert result.lines == ["ready", "working"]
    """

    def __init__(self, config: HarnessConfig | None = None) -> None:
        self.config = config or HarnessConfig()

    async def stop(
        self,
        handle: BackgroundProcess | None,
        sig: SignalSpec | None = None,
    ) -> StopResult | None:
        """Signal the process, wait for exit and harvest its output.

        Args:
            handle: Process to stop. None or an already stopped handle is a
                no-op.
            sig: Signal name or number (default from config, TERM).

        Returns:
            StopResult, or None if there was nothing to stop.

        Raises:
            UnknownSignalError: If ``sig`` does not name a signal.
        """
        if handle is None or handle.state is LifecycleState.STOPPED:
            _logger.debug("process.stop_noop")
            return None

        signum = resolve_signal(sig if sig is not None else self.config.default_signal)
        if signum in RUNNER_INTERCEPTED_SIGNALS:
            _logger.warning(
                "process.intercepted_signal",
                signal=signum.name,
                hint="test runners handle this signal themselves; prefer TERM or KILL",
            )

        if handle.process is None:
            status = spawn_failure_status(handle.spawn_error) if handle.spawn_error else 127
            returncode = None
            signal_sent = None
        else:
            returncode = await self._terminate(handle.process, signum)
            status = exit_status_from_returncode(returncode)
            signal_sent = int(signum)

        raw_bytes = self._harvest(handle)
        raw_output = raw_bytes.decode("utf-8", errors="replace")
        duration = time.monotonic() - handle.started_at

        _logger.debug(
            "process.stopped",
            pid=handle.pid,
            signal=signum.name,
            exit_status=status,
            output_bytes=len(raw_bytes),
            duration_seconds=duration,
        )

        return StopResult(
            exit_status=status,
            raw_output=raw_output,
            lines=split_output_lines(raw_output),
            raw_bytes=raw_bytes,
            returncode=returncode,
            exit_signal=(
                exit_signal_from_returncode(returncode) if returncode is not None else None
            ),
            signal_sent=signal_sent,
            duration_seconds=duration,
        )

    async def _terminate(
        self,
        process: asyncio.subprocess.Process,
        signum: signal.Signals,
    ) -> int:
        """Deliver ``signum`` and wait for exit, escalating if configured."""
        try:
            process.send_signal(signum)
        except ProcessLookupError:
            _logger.debug("process.already_exited", pid=process.pid)

        if self.config.kill_timeout is None:
            return await process.wait()

        try:
            return await asyncio.wait_for(process.wait(), timeout=self.config.kill_timeout)
        except TimeoutError:
            _logger.warning(
                "process.kill_escalation",
                pid=process.pid,
                signal=signum.name,
                kill_timeout=self.config.kill_timeout,
            )
            try:
                process.kill()
            except ProcessLookupError:
                pass
            return await process.wait()

    def _harvest(self, handle: BackgroundProcess) -> bytes:
        """Read and delete the capture buffer, then mark the handle stopped."""
        try:
            raw = handle.capture_path.read_bytes()
        except FileNotFoundError:
            raw = b""
        handle.capture_path.unlink(missing_ok=True)
        handle.state = LifecycleState.STOPPED
        return raw


__all__ = ["ProcessReaper"]
