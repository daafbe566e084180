"""Allow running bgharness as ``python -m bgharness``."""

from bgharness.cli import app

if __name__ == "__main__":
    app()
