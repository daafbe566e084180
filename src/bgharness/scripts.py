"""Materialize literal command lines as executable scripts.

Lets a test describe a throwaway background program inline:

    path = ScriptAuthor(tmp_path).write("server", [
        "echo ready",
        "exec sleep 60",
    ])

The script is rendered from a Jinja2 template with a shebang line and made
executable, so the launcher can run it like any other command.
"""

from __future__ import annotations

import stat
from collections.abc import Sequence
from pathlib import Path

import jinja2

from bgharness.core.errors import ScriptAuthoringError
from bgharness.core.logging import get_logger

_logger = get_logger("scripts")

SCRIPT_TEMPLATE = """\
#!{{ shell }}
{% for line in lines -%}
{{ line }}
{% endfor -%}
"""

_EXECUTABLE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


class ScriptAuthor:
    """Writes executable scripts into one directory."""

    def __init__(
        self,
        directory: Path,
        shell: str = "/bin/sh",
        jinja_env: jinja2.Environment | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.shell = shell
        self.env = jinja_env or jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._template = self.env.from_string(SCRIPT_TEMPLATE)

    def path_for(self, name: str) -> Path:
        """Location a script called ``name`` is written to."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ScriptAuthoringError(f"invalid script name: {name!r}")
        return self.directory / name

    def render(self, lines: Sequence[str]) -> str:
        """Render script text for ``lines``."""
        if isinstance(lines, str):
            raise ScriptAuthoringError("lines must be a sequence of strings, not a string")
        if not lines:
            raise ScriptAuthoringError("a script needs at least one command line")
        return self._template.render(shell=self.shell, lines=list(lines))

    def write(self, name: str, lines: Sequence[str]) -> Path:
        """Write an executable script and return its path.

        An existing script with the same name is replaced.

        Raises:
            ScriptAuthoringError: If the name is not a plain file name or
                there are no lines.
        """
        path = self.path_for(name)
        content = self.render(lines)
        self.directory.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        path.chmod(_EXECUTABLE)
        _logger.debug("script.written", path=str(path), line_count=len(lines))
        return path


__all__ = ["SCRIPT_TEMPLATE", "ScriptAuthor"]
