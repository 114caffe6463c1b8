"""Main CLI entry point for Converge."""

import logging
import click
from .commands.validate import validate
from .commands.graph import graph
from .commands.plan import plan
from .commands.apply import apply
from .commands.destroy import destroy
from .commands.state import state
from .commands.report import report
from .commands.init import init
from ..utils.logging import get_logger, setup_logging
from .. import __version__

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="converge", message="%(prog)s version %(version)s")
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """Converge - Dependency-ordered infrastructure provisioning."""
    if verbose:
        setup_logging(level=logging.DEBUG)


cli.add_command(validate)
cli.add_command(graph)
cli.add_command(plan)
cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(state)
cli.add_command(report)
cli.add_command(init)

from .commands.version import version as version_command
cli.add_command(version_command)
