"""Shared test helpers: small Python programs used as background processes."""

import sys
import textwrap

PYTHON = sys.executable

# Prints two lines, then exits 0 when asked to terminate.
READY_THEN_WORKING = """
import signal, sys, time
signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))
print("ready", flush=True)
print("working", flush=True)
while True:
    time.sleep(0.1)
"""

# Never prints; dies from the default SIGTERM action.
SILENT_SLEEPER = """
import time
while True:
    time.sleep(0.1)
"""

# Ignores SIGTERM, so only SIGKILL stops it.
TERM_IGNORER = """
import signal, time
signal.signal(signal.SIGTERM, signal.SIG_IGN)
print("ready", flush=True)
while True:
    time.sleep(0.1)
"""


def python_argv(code: str) -> list[str]:
    """Command line running ``code`` with the current interpreter."""
    return [PYTHON, "-c", textwrap.dedent(code)]


def delayed_printer(*lines: str, delay: float = 0.2) -> list[str]:
    """Command printing ``lines`` after ``delay`` seconds, then sleeping."""
    return python_argv(
        f"""
        import sys, time
        time.sleep({delay!r})
        for line in {list(lines)!r}:
            print(line, flush=True)
        while True:
            time.sleep(0.1)
        """
    )
