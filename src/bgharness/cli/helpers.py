"""Shared state and config loading for bgharness CLI commands.

Global options (--config, --log-level, ...) are recorded by the app callback
here, then commands call ``load_config()`` to get a HarnessConfig with those
overrides applied and logging configured.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
import yaml
from pydantic import ValidationError

from bgharness.core.config import HarnessConfig
from bgharness.core.logging import configure_logging

from .output import err_console


@dataclass
class _CliState:
    config_file: Path | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    log_format: Literal["console", "json"] | None = None
    log_file: Path | None = None


_state = _CliState()


def set_global_options(
    config_file: Path | None,
    log_level: str | None,
    log_format: str | None,
    log_file: Path | None,
) -> None:
    """Record global CLI options for later commands."""
    _state.config_file = config_file
    _state.log_level = log_level.upper() if log_level else None  # type: ignore[assignment]
    _state.log_format = log_format.lower() if log_format else None  # type: ignore[assignment]
    _state.log_file = log_file


def reset_state() -> None:
    """Forget global options (primarily for testing)."""
    global _state
    _state = _CliState()


def load_config() -> HarnessConfig:
    """Build the HarnessConfig for a command and configure logging.

    Precedence: --config YAML file, else BGHARNESS_* environment variables;
    --log-* options override either.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    try:
        if _state.config_file is not None:
            config = HarnessConfig.from_yaml(_state.config_file)
        else:
            config = HarnessConfig.from_env()

        overrides = {
            key: value
            for key, value in (
                ("level", _state.log_level),
                ("format", _state.log_format),
                ("file_path", _state.log_file),
            )
            if value is not None
        }
        if overrides:
            config = config.model_copy(
                update={"log": config.log.model_validate({**config.log.model_dump(), **overrides})}
            )
    except (OSError, ValidationError, yaml.YAMLError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from None

    configure_logging(
        level=config.log.level,
        format=config.log.format,
        file_path=config.log.file_path,
    )
    return config
