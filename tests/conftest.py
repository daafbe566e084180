"""Pytest fixtures for bgharness tests."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from bgharness.core.config import HarnessConfig

pytest_plugins = ["bgharness.pytest_plugin", "pytester"]


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    import bgharness.cli.helpers as cli_helpers

    cli_helpers.reset_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_level = root_logger.level
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    cli_helpers.reset_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def config(temp_workspace: Path) -> HarnessConfig:
    """Harness config rooted at the workspace with a fast poll interval."""
    return HarnessConfig(context_root=temp_workspace, poll_interval=0.01)
