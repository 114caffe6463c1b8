"""Plan command - show what an apply would do."""

import json as json_lib
import sys
import click
from ...ingest.declaration_loader import load_declarations
from ...presentation.human_formatter import format_plan
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ...workspace import Workspace
from ..utils import build_config, emit, format_error
from ..utils.file_resolver import resolve_file_path

logger = get_logger("cli.plan")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
@click.option('--provider', help='Provider name')
@click.option('--refresh', is_flag=True, help='Read stored resources from the provider before planning')
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
def plan(declarations, config_path, state_dir, provider, refresh, json, output):
    """
    Compute the actions needed to reconcile declared resources with stored state.
    
    Nothing is created, changed or deleted.
    """
    try:
        try:
            path = resolve_file_path(declarations)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        config = build_config(config_path, state_dir=state_dir, provider=provider)
        declaration = load_declarations(str(path))
        execution_plan = Workspace(config).plan(declaration.resources, refresh=refresh)
        
        if json:
            output_text = json_lib.dumps(execution_plan.model_dump(mode="json"), indent=2)
        else:
            output_text = format_plan(execution_plan)
        emit(output_text, output)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(1)
