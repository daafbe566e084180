"""Launch commands as background processes with captured output.

The child's stdout and stderr both go to a capture buffer file that the
watcher follows and the reaper harvests. ``launch`` returns as soon as the
child is spawned; it never waits on or inspects the exit status.

Descriptors a test framework keeps open for its own diagnostics (bats uses
fd 3, for instance) are never inherited: a long-lived child holding such a
descriptor open keeps the framework from finishing even after the child's
own output is done.

Security Note: Uses asyncio.create_subprocess_exec(), so arguments are passed
as a list and never interpolated into a shell command.
"""

from __future__ import annotations

import asyncio
import errno
from collections.abc import Mapping, Sequence
from pathlib import Path

from bgharness.core.config import HarnessConfig
from bgharness.core.logging import get_logger
from bgharness.core.signals import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND
from bgharness.process.handle import BackgroundProcess
from bgharness.scripts import ScriptAuthor

_logger = get_logger("launcher")


class ProcessLauncher:
    """Spawns background processes into a fresh capture buffer.

    Usage:
        launcher = ProcessLauncher(HarnessConfig(context_root=tmp_path))
        handle = await launcher.launch("my-server", "--port", "8080")
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        script_author: ScriptAuthor | None = None,
    ) -> None:
        self.config = config or HarnessConfig()
        self.script_author = script_author or ScriptAuthor(
            self.config.scripts_dir(),
            shell=self.config.script_shell,
        )

    async def launch(
        self,
        command: str | Path,
        *args: str,
        capture_path: Path | str | None = None,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> BackgroundProcess:
        """Start ``command`` in the background.

        Args:
            command: Executable to run (looked up on PATH if not a path).
            *args: Arguments passed to the command.
            capture_path: Capture buffer override. Defaults to
                ``<context_root>/<capture_filename>``.
            cwd: Working directory for the child.
            env: Environment for the child (None inherits ours).

        Returns:
            A LAUNCHED handle. If the command could not be spawned the handle
            carries the error and stop() reports a 126/127 exit status.
        """
        argv = [str(command), *args]
        capture = self.config.capture_path(capture_path)
        capture.parent.mkdir(parents=True, exist_ok=True)

        # Opening with "wb" truncates any buffer left by a previous run
        with open(capture, "wb") as buffer:
            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=buffer,
                    stderr=asyncio.subprocess.STDOUT,
                    cwd=cwd,
                    env=dict(env) if env is not None else None,
                    close_fds=True,
                    pass_fds=self._inheritable_fds(),
                    start_new_session=self.config.new_session,
                )
            except OSError as exc:
                buffer.write(f"{argv[0]}: {exc.strerror or exc}\n".encode())
                _logger.warning(
                    "process.spawn_failed",
                    command=argv[0],
                    error=str(exc),
                    exit_status=spawn_failure_status(exc),
                )
                return BackgroundProcess(argv=argv, capture_path=capture, spawn_error=exc)

        _logger.debug(
            "process.launched",
            pid=process.pid,
            command=argv[0],
            args_count=len(args),
            capture_path=str(capture),
        )
        return BackgroundProcess(argv=argv, capture_path=capture, process=process)

    async def launch_script(
        self,
        name: str,
        lines: Sequence[str],
        *,
        capture_path: Path | str | None = None,
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> BackgroundProcess:
        """Materialize ``lines`` as an executable script and launch it."""
        script = self.script_author.write(name, lines)
        return await self.launch(script, capture_path=capture_path, cwd=cwd, env=env)

    def _inheritable_fds(self) -> tuple[int, ...]:
        """Descriptors passed to the child, minus framework diagnostic ones."""
        reserved = set(self.config.diagnostic_fds)
        blocked = [fd for fd in self.config.pass_fds if fd in reserved]
        if blocked:
            _logger.warning("process.diagnostic_fds_withheld", fds=blocked)
        return tuple(fd for fd in self.config.pass_fds if fd not in reserved)


def spawn_failure_status(exc: OSError) -> int:
    """Shell exit status for a command that could not be started."""
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return EXIT_NOT_FOUND
    return EXIT_NOT_EXECUTABLE


__all__ = ["ProcessLauncher", "spawn_failure_status"]
