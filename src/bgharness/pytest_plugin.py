"""pytest integration for bgharness.

Enable it from a ``conftest.py``:

    pytest_plugins = ["bgharness.pytest_plugin"]

Provides:
    - ``harness_config`` fixture: HarnessConfig loaded from BGHARNESS_*
      environment variables, rooted at the test's tmp_path.
    - ``background`` fixture: a HarnessContext for the test. Any process
      still running at teardown is stopped.
    - ``@pytest.mark.requires("util", ...)``: skip the test when a utility
      is missing from PATH.

Harness log events emitted while a test runs carry its node id as
``test_id``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from bgharness.capability import require_utilities
from bgharness.context import HarnessContext
from bgharness.core.config import HarnessConfig
from bgharness.core.logging import TestContext, clear_context, set_context


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "requires(*utilities): skip the test unless every utility is on PATH",
    )


def pytest_runtest_setup(item: pytest.Item) -> None:
    # Set from the synchronous hook so event loop tasks created for the
    # test inherit it.
    set_context(TestContext(test_id=item.nodeid))
    for marker in item.iter_markers(name="requires"):
        require_utilities(*marker.args)


@pytest.hookimpl(trylast=True)
def pytest_runtest_teardown(item: pytest.Item) -> None:
    clear_context()


@pytest.fixture
def harness_config(tmp_path: Path) -> HarnessConfig:
    """Harness settings from the environment, rooted at tmp_path."""
    return HarnessConfig.from_env().with_root(tmp_path)


@pytest_asyncio.fixture
async def background(harness_config: HarnessConfig) -> AsyncIterator[HarnessContext]:
    """HarnessContext for one test; stops a leftover process at teardown."""
    async with HarnessContext(config=harness_config) as ctx:
        yield ctx
