"""Configuration models for bgharness.

Defines Pydantic v2 models for harness settings: where capture buffers live,
watch timeouts, stop signal handling and logging. Settings load from YAML or
from ``BGHARNESS_*`` environment variables.

Example YAML:
    default_timeout: 5.0
    default_signal: TERM
    kill_timeout: 10.0
    log:
      level: DEBUG
      format: json
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from bgharness.core.errors import UnknownSignalError
from bgharness.core.signals import DEFAULT_STOP_SIGNAL, resolve_signal

ENV_PREFIX = "BGHARNESS_"

DEFAULT_CAPTURE_FILENAME = "background-run-output.txt"
DEFAULT_WATCH_TIMEOUT = 3.0


class LogSettings(BaseModel):
    """Logging configuration applied by ``configure_logging``."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level. Harness events are mostly DEBUG.",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="console: human-readable on stderr; json: one object per line",
    )
    file_path: Path | None = Field(
        default=None,
        description="Write logs to this rotating file instead of a stream",
    )


class HarnessConfig(BaseModel):
    """Settings shared by the launcher, watcher and reaper."""

    context_root: Path | None = Field(
        default=None,
        description="Per-test directory holding the capture buffer and scripts. "
        "None means the current working directory.",
    )
    capture_filename: str = Field(
        default=DEFAULT_CAPTURE_FILENAME,
        description="File name of the capture buffer inside context_root",
    )
    default_timeout: float = Field(
        default=DEFAULT_WATCH_TIMEOUT,
        gt=0,
        description="Seconds wait_for_output waits when no timeout is given",
    )
    poll_interval: float = Field(
        default=0.05,
        gt=0,
        le=5.0,
        description="Seconds the follow-read sleeps at end of the capture buffer",
    )
    default_signal: str | int = Field(
        default=DEFAULT_STOP_SIGNAL.name.removeprefix("SIG"),
        description="Signal sent by stop() when none is given",
    )
    kill_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Escalate to SIGKILL if the process outlives the stop signal "
        "by this many seconds. None waits indefinitely.",
    )
    diagnostic_fds: list[int] = Field(
        default_factory=lambda: [3],
        description="Descriptors the test framework reserves for its own "
        "diagnostics. Never inherited by the child.",
    )
    pass_fds: list[int] = Field(
        default_factory=list,
        description="Extra descriptors the child should inherit",
    )
    new_session: bool = Field(
        default=False,
        description="Start the child in its own session (setsid)",
    )
    script_shell: str = Field(
        default="/bin/sh",
        description="Interpreter written into the shebang of generated scripts",
    )
    scripts_dirname: str = Field(
        default="scripts",
        description="Directory inside context_root for generated scripts",
    )
    log: LogSettings = Field(default_factory=LogSettings)

    @field_validator("capture_filename", "scripts_dirname")
    @classmethod
    def _plain_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"must be a plain file name, got {v!r}")
        return v

    @field_validator("default_signal")
    @classmethod
    def _known_signal(cls, v: str | int) -> str | int:
        try:
            resolve_signal(v)
        except UnknownSignalError as exc:
            raise ValueError(str(exc)) from exc
        return v

    @field_validator("diagnostic_fds", "pass_fds", mode="before")
    @classmethod
    def _split_fd_list(cls, v: Any) -> Any:
        # "3,4" from an environment variable
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("diagnostic_fds", "pass_fds")
    @classmethod
    def _non_standard_fds(cls, v: list[int]) -> list[int]:
        for fd in v:
            if fd < 3:
                raise ValueError(f"descriptor {fd} is a standard stream")
        return v

    def resolve_root(self) -> Path:
        """Directory used for capture buffers and scripts."""
        return self.context_root if self.context_root is not None else Path.cwd()

    def capture_path(self, override: Path | str | None = None) -> Path:
        """Capture buffer location, honoring a caller override."""
        if override is not None:
            return Path(override)
        return self.resolve_root() / self.capture_filename

    def scripts_dir(self) -> Path:
        return self.resolve_root() / self.scripts_dirname

    def with_root(self, root: Path) -> HarnessConfig:
        """Copy of this config bound to a context root."""
        return self.model_copy(update={"context_root": root})

    @classmethod
    def from_yaml(cls, path: Path) -> HarnessConfig:
        """Load harness configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> HarnessConfig:
        """Load harness configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HarnessConfig:
        """Load harness configuration from ``BGHARNESS_*`` variables.

        ``BGHARNESS_DEFAULT_TIMEOUT=5`` sets ``default_timeout``;
        ``BGHARNESS_LOG_LEVEL=DEBUG`` sets ``log.level``. Descriptor lists take
        comma-separated values.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        log: dict[str, Any] = {}
        for key, value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            name = key[len(ENV_PREFIX):].lower()
            if name.startswith("log_"):
                log[name[len("log_"):]] = value
            elif name in cls.model_fields:
                data[name] = value
        if log:
            data["log"] = log
        return cls.model_validate(data)


__all__ = [
    "DEFAULT_CAPTURE_FILENAME",
    "DEFAULT_WATCH_TIMEOUT",
    "ENV_PREFIX",
    "HarnessConfig",
    "LogSettings",
]
