"""Tests for HarnessContext: the per-test launch/wait/stop lifecycle."""

from __future__ import annotations

import asyncio
import io
from pathlib import Path

import pytest

from bgharness.context import ContextState, HarnessContext
from bgharness.core.config import HarnessConfig
from bgharness.core.errors import ProcessAlreadyActiveError, WatchSessionActiveError
from bgharness.process.handle import LifecycleState, WatchOutcome
from bgharness.process.watcher import OutputWatcher
from tests.helpers import READY_THEN_WORKING, SILENT_SLEEPER, python_argv


@pytest.fixture
def ctx(config: HarnessConfig) -> HarnessContext:
    context = HarnessContext(config=config)
    context.watcher = OutputWatcher(config, stream=io.StringIO())
    return context


@pytest.mark.timeout(15)
class TestLifecycle:
    """End-to-end launch, wait and stop."""

    @pytest.mark.asyncio
    async def test_ready_then_graceful_stop(self, ctx: HarnessContext) -> None:
        await ctx.launch(*python_argv(READY_THEN_WORKING))
        assert ctx.state is ContextState.LAUNCHED

        assert await ctx.wait_for_output("ready", timeout=5)
        assert await ctx.wait_for_output("working", timeout=5)
        result = await ctx.stop()

        assert result is not None
        assert result.exit_status == 0
        assert result.lines == ["ready", "working"]
        assert ctx.state is ContextState.NOT_STARTED
        assert ctx.current is None

    @pytest.mark.asyncio
    async def test_timeout_then_stop(self, ctx: HarnessContext) -> None:
        handle = await ctx.launch(*python_argv(SILENT_SLEEPER))

        watched = await ctx.wait_for_output("never", timeout=0.3)
        assert watched.outcome is WatchOutcome.TIMEOUT
        assert handle.is_running

        result = await ctx.stop()
        assert result is not None
        assert result.exit_status == 143
        assert result.lines == []

    @pytest.mark.asyncio
    async def test_second_launch_rejected(self, ctx: HarnessContext) -> None:
        first = await ctx.launch(*python_argv(SILENT_SLEEPER))

        with pytest.raises(ProcessAlreadyActiveError):
            await ctx.launch(*python_argv(SILENT_SLEEPER))
        assert ctx.current is first

        await ctx.stop("KILL")
        second = await ctx.launch(*python_argv(SILENT_SLEEPER))
        assert second is not first
        await ctx.stop("KILL")

    @pytest.mark.asyncio
    async def test_capture_override(self, ctx: HarnessContext, temp_workspace: Path) -> None:
        capture = temp_workspace / "elsewhere" / "out.log"
        handle = await ctx.launch(*python_argv(READY_THEN_WORKING), capture_path=capture)

        assert handle.capture_path == capture
        assert await ctx.wait_for_output("ready", timeout=5)
        assert not ctx.capture_path.exists()
        await ctx.stop()
        assert not capture.exists()

    @pytest.mark.asyncio
    @pytest.mark.requires("sh", "sleep")
    async def test_launch_script(self, ctx: HarnessContext) -> None:
        handle = await ctx.launch_script("server", ["echo up", "exec sleep 30"])
        assert handle.argv[0].endswith("server")

        assert await ctx.wait_for_output("^up$", timeout=5)
        result = await ctx.stop()

        assert result is not None
        assert result.exit_status == 143
        assert result.lines == ["up"]


class TestIdleContext:
    """Operations on a context with nothing launched."""

    @pytest.mark.asyncio
    async def test_wait_without_launch(self, ctx: HarnessContext) -> None:
        result = await ctx.wait_for_output("ready", timeout=1)

        assert result.outcome is WatchOutcome.NOT_LAUNCHED
        assert not ctx.capture_path.exists()

    @pytest.mark.asyncio
    async def test_overlapping_override_watches_rejected(
        self, ctx: HarnessContext, temp_workspace: Path
    ) -> None:
        buffer = temp_workspace / "external.log"
        buffer.write_text("")
        first = asyncio.create_task(ctx.wait_for_output("x", timeout=0.5, capture_path=buffer))
        await asyncio.sleep(0.05)

        with pytest.raises(WatchSessionActiveError):
            await ctx.wait_for_output("y", timeout=0.2, capture_path=buffer)

        assert (await first).outcome is WatchOutcome.TIMEOUT

    @pytest.mark.asyncio
    async def test_invalid_pattern_is_a_result(
        self, ctx: HarnessContext, temp_workspace: Path
    ) -> None:
        result = await ctx.wait_for_output(
            "(", timeout=0.3, capture_path=temp_workspace / "external.log"
        )
        assert result.outcome is WatchOutcome.INVALID_PATTERN

    @pytest.mark.asyncio
    async def test_stop_without_launch(self, ctx: HarnessContext) -> None:
        assert await ctx.stop() is None
        assert ctx.state is ContextState.NOT_STARTED

    def test_root_overrides_config(self, tmp_path: Path) -> None:
        ctx = HarnessContext(tmp_path / "a", config=HarnessConfig(context_root=tmp_path / "b"))
        assert ctx.capture_path.parent == tmp_path / "a"


class TestCleanup:
    """The async context manager stops leftovers."""

    @pytest.mark.asyncio
    @pytest.mark.timeout(15)
    async def test_exit_stops_running_process(self, config: HarnessConfig) -> None:
        async with HarnessContext(config=config) as ctx:
            handle = await ctx.launch(*python_argv(SILENT_SLEEPER))

        assert handle.state is LifecycleState.STOPPED
        assert not handle.is_running
        assert not handle.capture_path.exists()

    @pytest.mark.asyncio
    @pytest.mark.timeout(15)
    async def test_background_fixture(self, background: HarnessContext) -> None:
        await background.launch(*python_argv(READY_THEN_WORKING))
        assert await background.wait_for_output("ready", timeout=5)
        # Left running on purpose; the fixture stops it at teardown.
