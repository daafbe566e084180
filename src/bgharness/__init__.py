"""bgharness - launch background processes from tests and wait on their output.

Typical use from an async test:

    async with HarnessContext(tmp_path) as bg:
        await bg.launch("my-daemon", "--foreground")
        assert await bg.wait_for_output(r"ready", timeout=2)
        result = await bg.stop()
        assert result.exit_status == 0
"""

__version__ = "0.1.0"

from bgharness.capability import have_utilities, missing_utilities, require_utilities
from bgharness.context import ContextState, HarnessContext
from bgharness.core.config import HarnessConfig
from bgharness.core.errors import (
    HarnessError,
    OutputWaitError,
    ProcessAlreadyActiveError,
    ScriptAuthoringError,
    UnknownSignalError,
    WatchSessionActiveError,
)
from bgharness.process import (
    BackgroundProcess,
    LifecycleState,
    OutputWatcher,
    ProcessLauncher,
    ProcessReaper,
    StopResult,
    WatchOutcome,
    WatchResult,
)
from bgharness.scripts import ScriptAuthor

__all__ = [
    "BackgroundProcess",
    "ContextState",
    "HarnessConfig",
    "HarnessContext",
    "HarnessError",
    "LifecycleState",
    "OutputWaitError",
    "OutputWatcher",
    "ProcessAlreadyActiveError",
    "ProcessLauncher",
    "ProcessReaper",
    "ScriptAuthor",
    "ScriptAuthoringError",
    "StopResult",
    "UnknownSignalError",
    "WatchOutcome",
    "WatchResult",
    "WatchSessionActiveError",
    "__version__",
    "have_utilities",
    "missing_utilities",
    "require_utilities",
]
