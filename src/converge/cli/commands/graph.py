"""Graph command - show the dependency order of a declaration file."""

import json as json_lib
import sys
import click
from ...graph.dependency_graph import DependencyGraph
from ...ingest.declaration_loader import load_declarations
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import emit, format_error
from ..utils.file_resolver import resolve_file_path

logger = get_logger("cli.graph")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
def graph(declarations, json, output):
    """Show resources in dependency order with their dependencies."""
    try:
        try:
            path = resolve_file_path(declarations)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        declaration = load_declarations(str(path))
        dep_graph = DependencyGraph.build(declaration.resources)
        order = dep_graph.topological_order()
        
        if json:
            payload = {
                "order": order,
                "resources": {
                    name: {
                        "kind": dep_graph.get_spec(name).kind.value,
                        "dependencies": dep_graph.get_dependencies(name),
                        "dependents": dep_graph.get_dependents(name),
                    }
                    for name in order
                },
            }
            output_text = json_lib.dumps(payload, indent=2)
        else:
            lines = []
            for position, name in enumerate(order, start=1):
                spec = dep_graph.get_spec(name)
                deps = dep_graph.get_dependencies(name)
                suffix = f"  <- {', '.join(deps)}" if deps else ""
                lines.append(f"{position:>3}. {spec.kind.value:<12} {name}{suffix}")
            output_text = "\n".join(lines)
        
        emit(output_text, output)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Graph failed: {e}"), err=True)
        sys.exit(1)
