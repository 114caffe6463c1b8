"""Destroy command - delete every resource recorded in state."""

import json as json_lib
import sys
import threading
import click
from ...presentation.human_formatter import format_apply_result, format_plan
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ...workspace import Workspace
from ..utils import build_config, emit, format_error, interrupt_cancels
from .apply import EXIT_CODES

logger = get_logger("cli.destroy")


@click.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
@click.option('--provider', help='Provider name')
@click.option('--workers', type=int, help='Maximum concurrent provider calls')
@click.option('--timeout', type=float, help='Per provider call deadline in seconds (0 disables)')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
def destroy(config_path, state_dir, provider, workers, timeout, yes, json):
    """Delete all resources in state, dependents before their dependencies."""
    try:
        config = build_config(config_path, state_dir=state_dir, workers=workers, timeout=timeout, provider=provider)
        workspace = Workspace(config)
        execution_plan = workspace.plan_destroy()
        
        if not execution_plan.actions:
            click.echo("Nothing to destroy.")
            return
        
        click.echo(format_plan(execution_plan), err=True)
        if not yes and not click.confirm(f"Delete {len(execution_plan)} resources?", err=True):
            click.echo("Aborted.", err=True)
            sys.exit(1)
        
        with interrupt_cancels(threading.Event()) as cancel_event:
            result = workspace.executor(cancel_event).apply(execution_plan)
        
        if json:
            emit(json_lib.dumps(result.model_dump(mode="json"), indent=2))
        else:
            emit(format_apply_result(result))
        sys.exit(EXIT_CODES[result.status])
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Destroy failed: {e}"), err=True)
        sys.exit(1)
