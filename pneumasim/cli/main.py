"""PneumaSim command-line interface.

Entry point for the ``pneumasim`` CLI tool.
"""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from pneumasim import __app_name__, __version__

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name=__app_name__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """PneumaSim — pneumatic network pressure simulation.

    Runs and inspects networks of compressors, push-button valves,
    cylinders and splitters joined by tubes.
    """
    ctx.ensure_object(dict)
    ctx.obj["console"] = console
    # Root may already carry handlers from a host application.
    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


# Import and register sub-commands
from pneumasim.cli.run_cmd import run  # noqa: E402
from pneumasim.cli.info_cmd import check, info  # noqa: E402

cli.add_command(run)
cli.add_command(check)
cli.add_command(info)


def main() -> None:
    """Convenience wrapper for entry-point scripts."""
    cli()
