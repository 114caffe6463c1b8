"""Validate command - check a declaration file without touching state or providers."""

import sys
import click
from ...graph.dependency_graph import DependencyGraph
from ...ingest.declaration_loader import load_declarations
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import format_error
from ..utils.file_resolver import resolve_file_path

logger = get_logger("cli.validate")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
def validate(declarations):
    """
    Validate a declaration file.
    
    Checks structure, required properties, duplicate names, unresolved
    references and dependency cycles.
    """
    try:
        try:
            path = resolve_file_path(declarations)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        declaration = load_declarations(str(path))
        graph = DependencyGraph.build(declaration.resources)
        click.echo(f"Valid: {len(graph)} resources, {graph.graph.number_of_edges()} dependencies")
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Validation failed: {e}"), err=True)
        sys.exit(1)
