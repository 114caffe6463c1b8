"""Init command - write a bundled stack out as a declaration file."""

import sys
from pathlib import Path
import click
import yaml
from ...stacks import STACKS
from ...utils.logging import get_logger
from ..utils import format_error

logger = get_logger("cli.init")


@click.command()
@click.option('--stack', '-s', 'stack_names', multiple=True, type=click.Choice(sorted(STACKS)), required=True,
              help='Bundled stack to include (repeatable)')
@click.option('--output', '-o', type=click.Path(), default='converge.yaml', show_default=True,
              help='Declaration file to write')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init(stack_names, output, force):
    """Write one or more bundled stacks to a declaration file."""
    output_path = Path(output)
    if output_path.exists() and not force:
        click.echo(format_error(f"File already exists: {output_path}", "Use --force to overwrite."), err=True)
        sys.exit(1)
    
    builder = STACKS[stack_names[0]]()
    for name in stack_names[1:]:
        builder.extend(STACKS[name]())
    document = builder.build().to_document()
    
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(document, f, sort_keys=False)
    logger.info(f"Wrote stacks {', '.join(stack_names)} to {output_path}")
    click.echo(f"Wrote {len(document['resources'])} resources to {output_path}")
