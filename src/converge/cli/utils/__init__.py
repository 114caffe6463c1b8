"""CLI utilities package."""

import json
import logging
import os
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import click
from ...config import EngineConfig, load_engine_config
from ...execution.results import ApplyResult
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    if os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes"):
        error = f"Error: {message}"
        if suggestion:
            error += f"\nTip: {suggestion}"
        return error
    error = f"❌ Error: {message}"
    if suggestion:
        error += f"\n💡 Tip: {suggestion}"
    return error


def build_config(
    config_path: Optional[str] = None,
    state_dir: Optional[str] = None,
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    provider: Optional[str] = None,
) -> EngineConfig:
    """
    Load configuration and apply command-line overrides.
    
    Raises:
        ConfigError: If config files are invalid
    """
    config = load_engine_config(config_path)
    overrides = {}
    if state_dir is not None:
        overrides["state_path"] = state_dir
    if workers is not None:
        if workers < 1:
            raise ConvergeError("--workers must be at least 1")
        overrides["max_workers"] = workers
    if timeout is not None:
        overrides["provider_timeout_seconds"] = timeout if timeout > 0 else None
    if provider is not None and provider != config.provider_name:
        overrides["provider_name"] = provider
        overrides["provider_options"] = {}
    if overrides:
        config = config.model_copy(update=overrides)
    package_logger = logging.getLogger("converge")
    if package_logger.level != logging.DEBUG:
        package_logger.setLevel(config.log_level)
    logger.debug(f"Effective config: {config.model_dump()}")
    return config


def emit(output_text: str, output: Optional[str] = None, quiet: bool = False) -> None:
    """Write command output to a file or stdout."""
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(output_text)
        if not quiet:
            click.echo(f"Output saved to: {output_path}", err=True)
        return
    try:
        click.echo(output_text)
    except UnicodeEncodeError:
        click.echo(output_text.encode('ascii', errors='replace').decode('ascii'))


def load_apply_result(path: str) -> ApplyResult:
    """
    Read a saved ApplyResult JSON file.
    
    Raises:
        ConvergeError: If the file is not a valid ApplyResult
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConvergeError(f"Invalid JSON in apply result file: {e}")
    except OSError as e:
        raise ConvergeError(f"Error reading apply result file: {e}")
    try:
        return ApplyResult(**data)
    except (TypeError, ValueError) as e:
        raise ConvergeError(f"File is not an apply result: {e}")


@contextmanager
def interrupt_cancels(event: threading.Event) -> Iterator[threading.Event]:
    """
    Route SIGINT to a cancel event while the block runs.
    
    A second interrupt falls back to the default handler.
    """
    if threading.current_thread() is not threading.main_thread():
        yield event
        return
    
    previous = signal.getsignal(signal.SIGINT)
    
    def _handler(signum, frame):
        click.echo("Interrupt received: finishing in-flight actions, skipping the rest...", err=True)
        event.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)
    
    signal.signal(signal.SIGINT, _handler)
    try:
        yield event
    finally:
        signal.signal(signal.SIGINT, previous)


__all__ = ["resolve_file_path", "format_error", "build_config", "emit", "load_apply_result", "interrupt_cancels"]
