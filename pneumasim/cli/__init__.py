"""PneumaSim command-line interface package.

Supports ``python -m pneumasim.cli`` as an alternative to the ``pneumasim`` entry point.
"""

from pneumasim.cli.main import cli, main

__all__ = ["cli", "main"]
