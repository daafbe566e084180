"""Background process lifecycle: launch, watch output, stop and harvest."""

from bgharness.process.handle import (
    BackgroundProcess,
    LifecycleState,
    StopResult,
    WatchOutcome,
    WatchResult,
    WatchSession,
    split_output_lines,
)
from bgharness.process.launcher import ProcessLauncher
from bgharness.process.reaper import ProcessReaper
from bgharness.process.watcher import OutputWatcher, follow_lines

__all__ = [
    "BackgroundProcess",
    "LifecycleState",
    "OutputWatcher",
    "ProcessLauncher",
    "ProcessReaper",
    "StopResult",
    "WatchOutcome",
    "WatchResult",
    "WatchSession",
    "follow_lines",
    "split_output_lines",
]
