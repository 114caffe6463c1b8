"""Apply command - plan and execute a declaration file."""

import json as json_lib
import sys
import threading
from pathlib import Path
import click
from ...execution.results import ApplyResult, ApplyStatus
from ...ingest.declaration_loader import load_declarations
from ...presentation.human_formatter import format_apply_result, format_plan
from ...report.artifact import generate_artifacts
from ...utils.errors import ConvergeError, ValidationError
from ...utils.logging import get_logger
from ...workspace import Workspace
from ..utils import build_config, emit, format_error, interrupt_cancels
from ..utils.file_resolver import resolve_file_path

logger = get_logger("cli.apply")

EXIT_CODES = {
    ApplyStatus.SUCCESS: 0,
    ApplyStatus.FAILED: 1,
    ApplyStatus.PARTIAL_FAILURE: 2,
}


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
@click.option('--provider', help='Provider name')
@click.option('--workers', type=int, help='Maximum concurrent provider calls')
@click.option('--timeout', type=float, help='Per provider call deadline in seconds (0 disables)')
@click.option('--refresh', is_flag=True, help='Read stored resources from the provider before planning')
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
@click.option('--report-dir', type=click.Path(), help='Write CI/CD artifacts to this directory')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def apply(declarations, config_path, state_dir, provider, workers, timeout, refresh, json, output, report_dir, quiet):
    """
    Create, update and delete resources so they match the declaration file.
    
    Exit codes: 0 all actions applied, 2 partial failure, 1 nothing applied or error.
    Ctrl-C stops dispatching; in-flight actions finish and are recorded.
    """
    try:
        try:
            path = resolve_file_path(declarations)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        config = build_config(config_path, state_dir=state_dir, workers=workers, timeout=timeout, provider=provider)
        declaration = load_declarations(str(path))
        workspace = Workspace(config)
        execution_plan = workspace.plan(declaration.resources, refresh=refresh, prune=refresh)
        
        if not quiet:
            click.echo(format_plan(execution_plan, show_noop=False), err=True)
            click.echo("", err=True)
        
        with interrupt_cancels(threading.Event()) as cancel_event:
            result = workspace.executor(cancel_event).apply(execution_plan, stack_outputs=declaration.outputs)
        
        _finish(result, json, output, report_dir, quiet)
        sys.exit(EXIT_CODES[result.status])
    
    except ValidationError as e:
        click.echo(format_error(str(e), "Run 'converge validate' to check the declaration file."), err=True)
        sys.exit(1)
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Apply failed: {e}"), err=True)
        sys.exit(1)


def _finish(result: ApplyResult, json: bool, output, report_dir, quiet: bool) -> None:
    """Render the result and write artifacts."""
    if json:
        output_text = json_lib.dumps(result.model_dump(mode="json"), indent=2)
    else:
        output_text = format_apply_result(result)
    emit(output_text, output, quiet=quiet)
    
    if report_dir:
        generate_artifacts(result, Path(report_dir))
        if not quiet:
            click.echo(f"Artifacts written to: {report_dir}", err=True)
