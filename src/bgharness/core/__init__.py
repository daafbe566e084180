"""Core infrastructure: configuration, logging, errors and signal helpers."""

from bgharness.core.config import HarnessConfig, LogSettings
from bgharness.core.errors import (
    HarnessError,
    OutputWaitError,
    ProcessAlreadyActiveError,
    ScriptAuthoringError,
    UnknownSignalError,
    WatchSessionActiveError,
)
from bgharness.core.logging import configure_logging, get_logger

__all__ = [
    "HarnessConfig",
    "HarnessError",
    "LogSettings",
    "OutputWaitError",
    "ProcessAlreadyActiveError",
    "ScriptAuthoringError",
    "UnknownSignalError",
    "WatchSessionActiveError",
    "configure_logging",
    "get_logger",
]
