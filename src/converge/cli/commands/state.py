"""State commands - inspect and edit the state store."""

import json as json_lib
import sys
from pathlib import Path
import click
from ...state.store import FileStateStore
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import build_config, format_error

logger = get_logger("cli.state")


def _open_store(config_path, state_dir) -> FileStateStore:
    config = build_config(config_path, state_dir=state_dir)
    return FileStateStore(Path(config.state_path))


@click.group()
def state():
    """Inspect and edit stored resource state."""
    pass


@state.command(name="list")
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
def list_resources(config_path, state_dir, json):
    """List stored resources."""
    try:
        snapshot = _open_store(config_path, state_dir).load()
        
        if json:
            payload = [snapshot[name].model_dump(mode="json") for name in snapshot]
            click.echo(json_lib.dumps(payload, indent=2))
            return
        
        if not snapshot:
            click.echo("No resources in state.")
            return
        for name in snapshot:
            entry = snapshot[name]
            click.echo(f"{entry.status.value:<8} {entry.kind.value:<12} {name}  {entry.resource_id or '-'}")
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('name')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
def show(name, config_path, state_dir):
    """Show the stored state of one resource as JSON."""
    try:
        entry = _open_store(config_path, state_dir).get(name)
        if entry is None:
            click.echo(format_error(f"Resource '{name}' not found in state.", "Run 'converge state list'."), err=True)
            sys.exit(1)
        click.echo(json_lib.dumps(entry.model_dump(mode="json"), indent=2))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('name')
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Config YAML applied over user/project config')
@click.option('--state-dir', type=click.Path(), help='State store directory')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
def rm(name, config_path, state_dir, yes):
    """
    Forget a resource without deleting it from the provider.
    
    The next plan treats it as never applied.
    """
    try:
        store = _open_store(config_path, state_dir)
        if store.get(name) is None:
            click.echo(format_error(f"Resource '{name}' not found in state."), err=True)
            sys.exit(1)
        if not yes and not click.confirm(f"Remove '{name}' from state?", err=True):
            click.echo("Aborted.", err=True)
            sys.exit(1)
        store.remove(name)
        click.echo(f"Removed '{name}' from state.")
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
