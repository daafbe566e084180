"""Exception hierarchy for bgharness.

All harness exceptions inherit from HarnessError, enabling callers to catch
broad (HarnessError) or narrow (e.g., WatchSessionActiveError).

Expected outcomes such as a watch timing out or a precondition not being met
are reported through result objects, not exceptions. The exceptions below
cover misuse of the harness and explicit ``raise_for_failure()`` calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bgharness.process.handle import WatchResult


class HarnessError(Exception):
    """Base exception for all harness errors."""


class ProcessAlreadyActiveError(HarnessError):
    """Raised when launching while the context already tracks a live process.

    A test context owns at most one background process. Stop the current one
    before launching another.
    """


class WatchSessionActiveError(HarnessError):
    """Raised when a second watch starts on a process that is already watched."""


class UnknownSignalError(HarnessError, ValueError):
    """Raised when a signal name or number cannot be resolved."""


class ScriptAuthoringError(HarnessError):
    """Raised when a script cannot be materialized from command lines.

    Examples: a name containing a path separator, an empty line list.
    """


class OutputWaitError(HarnessError):
    """Raised by ``WatchResult.raise_for_failure()`` on a failed watch."""

    def __init__(self, result: WatchResult) -> None:
        super().__init__(result.message)
        self.result = result


__all__ = [
    "HarnessError",
    "OutputWaitError",
    "ProcessAlreadyActiveError",
    "ScriptAuthoringError",
    "UnknownSignalError",
    "WatchSessionActiveError",
]
