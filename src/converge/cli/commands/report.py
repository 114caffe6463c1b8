"""Report command - generate reports from a saved ApplyResult (read-only)."""

from pathlib import Path
import click
from ...report.artifact import generate_artifacts
from ...report.markdown import generate_markdown
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import format_error, load_apply_result

logger = get_logger("cli.report")


@click.group()
def report():
    """Generate reports from an apply result (read-only)."""
    pass


@report.command()
@click.option('--apply-result', '-i', required=True, type=click.Path(exists=True), help='Path to ApplyResult JSON file')
@click.option('--output', '-o', required=True, type=click.Path(), help='Output markdown file path')
def markdown(apply_result, output):
    """Generate markdown report from an ApplyResult."""
    try:
        result = load_apply_result(apply_result)
        output_path = Path(output)
        generate_markdown(result, output_path)
        click.echo(f"Generated markdown report: {output_path}", err=True)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        click.get_current_context().exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Failed to generate markdown report: {e}"), err=True)
        click.get_current_context().exit(1)


@report.command()
@click.option('--apply-result', '-i', required=True, type=click.Path(exists=True), help='Path to ApplyResult JSON file')
@click.option('--output-dir', '-o', required=True, type=click.Path(), help='Output directory for artifacts')
def artifact(apply_result, output_dir):
    """Generate CI/CD artifacts from an ApplyResult."""
    try:
        result = load_apply_result(apply_result)
        output_path = Path(output_dir)
        generate_artifacts(result, output_path)
        click.echo(f"Generated artifacts in: {output_path}", err=True)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        click.get_current_context().exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Failed to generate artifacts: {e}"), err=True)
        click.get_current_context().exit(1)
