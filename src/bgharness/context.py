"""Per-test harness context owning at most one background process.

``HarnessContext`` ties the launcher, watcher and reaper to one test's
directory and enforces the single-process rule: launching while a process is
still tracked raises, and only ``stop`` clears the tracked process.

Example:
    async with HarnessContext(tmp_path) as bg:
        await bg.launch("my-server", "--port", "0")
        assert await bg.wait_for_output(r"listening", timeout=2)
        result = await bg.stop()
        assert result.exit_status == 0
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from types import TracebackType

from bgharness.core.config import HarnessConfig
from bgharness.core.errors import ProcessAlreadyActiveError
from bgharness.core.logging import get_logger
from bgharness.core.signals import SignalSpec
from bgharness.process.handle import BackgroundProcess, StopResult, WatchResult
from bgharness.process.launcher import ProcessLauncher
from bgharness.process.reaper import ProcessReaper
from bgharness.process.watcher import OutputWatcher

_logger = get_logger("context")


class ContextState(str, Enum):
    NOT_STARTED = "not_started"
    LAUNCHED = "launched"


class HarnessContext:
    """Launch, watch and stop one background process for a test."""

    def __init__(self, root: Path | str | None = None, config: HarnessConfig | None = None) -> None:
        """Initialize the context.

        Args:
            root: Directory for the capture buffer and generated scripts.
                Overrides ``config.context_root`` when given.
            config: Harness settings. Defaults to ``HarnessConfig()``.
        """
        config = config or HarnessConfig()
        if root is not None:
            config = config.with_root(Path(root))
        self.config = config
        self.launcher = ProcessLauncher(config)
        self.watcher = OutputWatcher(config)
        self.reaper = ProcessReaper(config)
        self._current: BackgroundProcess | None = None

    @property
    def current(self) -> BackgroundProcess | None:
        """The tracked process, or None in the NOT_STARTED state."""
        return self._current

    @property
    def state(self) -> ContextState:
        return ContextState.NOT_STARTED if self._current is None else ContextState.LAUNCHED

    @property
    def capture_path(self) -> Path:
        """Default capture buffer location for this context."""
        return self.config.capture_path()

    async def launch(
        self,
        command: str | Path,
        *args: str,
        capture_path: Path | str | None = None,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> BackgroundProcess:
        """Launch ``command`` in the background and track it.

        Raises:
            ProcessAlreadyActiveError: If a process is already tracked.
        """
        self._ensure_idle()
        self._current = await self.launcher.launch(
            command, *args, capture_path=capture_path, cwd=cwd, env=env
        )
        return self._current

    async def launch_script(
        self,
        name: str,
        lines: Sequence[str],
        *,
        capture_path: Path | str | None = None,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> BackgroundProcess:
        """Write ``lines`` to an executable script called ``name`` and launch it.

        Raises:
            ProcessAlreadyActiveError: If a process is already tracked.
            ScriptAuthoringError: If the script cannot be written.
        """
        self._ensure_idle()
        self._current = await self.launcher.launch_script(
            name, lines, capture_path=capture_path, cwd=cwd, env=env
        )
        return self._current

    async def wait_for_output(
        self,
        pattern: str,
        timeout: float | None = None,
        capture_path: Path | str | None = None,
    ) -> WatchResult:
        """Wait for a line matching ``pattern`` from the tracked process.

        See ``OutputWatcher.wait_for_output``. Fails with "process not
        launched" when nothing is tracked and no ``capture_path`` is given.
        """
        return await self.watcher.wait_for_output(
            self._current, pattern, timeout=timeout, capture_path=capture_path
        )

    async def stop(self, sig: SignalSpec | None = None) -> StopResult | None:
        """Stop the tracked process and return to NOT_STARTED.

        A no-op returning None when nothing is tracked.
        """
        result = await self.reaper.stop(self._current, sig)
        self._current = None
        return result

    async def aclose(self) -> None:
        """Stop any process still tracked, discarding its result."""
        if self._current is not None:
            _logger.debug("context.cleanup_running_process", pid=self._current.pid)
            await self.stop()

    async def __aenter__(self) -> HarnessContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _ensure_idle(self) -> None:
        if self._current is not None:
            raise ProcessAlreadyActiveError(
                f"pid {self._current.pid} ({self._current.argv[0]}) is still running; "
                "stop it before launching another process"
            )


__all__ = ["ContextState", "HarnessContext"]
