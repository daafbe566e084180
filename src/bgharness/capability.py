"""Skip tests on hosts that lack the utilities they need.

A missing utility means the host cannot run the test, not that the code
under test is broken, so the test is skipped instead of failed.
"""

from __future__ import annotations

import os
import shutil

import pytest

from bgharness.core.logging import get_logger

_logger = get_logger("capability")


def missing_utilities(*names: str, path: str | os.PathLike[str] | None = None) -> list[str]:
    """Return the names that cannot be resolved to an executable.

    Args:
        *names: Utility names (looked up on PATH) or paths.
        path: Search path override, as for ``shutil.which``.
    """
    missing = [name for name in names if shutil.which(name, path=path) is None]
    if missing:
        _logger.debug("capability.missing", utilities=missing)
    return missing


def have_utilities(*names: str, path: str | os.PathLike[str] | None = None) -> bool:
    """Whether every named utility is available."""
    return not missing_utilities(*names, path=path)


def require_utilities(*names: str, path: str | os.PathLike[str] | None = None) -> None:
    """Skip the calling test unless every named utility is available."""
    missing = missing_utilities(*names, path=path)
    if missing:
        pytest.skip(f"required utilities not found: {', '.join(missing)}")


__all__ = ["have_utilities", "missing_utilities", "require_utilities"]
