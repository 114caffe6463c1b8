"""Converge - Dependency-ordered infrastructure provisioning with idempotent convergence."""

import threading
from typing import Optional, Tuple
from .config import EngineConfig, load_engine_config
from .execution.results import ApplyResult, ApplyStatus
from .ingest.declaration_loader import load_declarations
from .ingest.models import Declaration
from .plan.models import Plan
from .workspace import Workspace
from .utils.logging import setup_logging, get_logger
from .utils.errors import ConvergeError

__version__ = "0.1.0"

__all__ = ["plan_declarations", "apply_declarations", "Workspace", "load_declarations", "load_engine_config"]

setup_logging()
logger = get_logger("converge")


def plan_declarations(
    declarations_path: str,
    config: Optional[EngineConfig] = None,
    refresh: bool = False
) -> Tuple[Declaration, Plan]:
    """Load a declaration file and plan it against stored state."""
    try:
        logger.info(f"Planning declarations: {declarations_path}")
        config = config or load_engine_config()
        declaration = load_declarations(declarations_path)
        workspace = Workspace(config)
        return declaration, workspace.plan(declaration.resources, refresh=refresh)
    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during planning: {e}", exc_info=True)
        raise ConvergeError(f"Planning failed: {e}") from e


def apply_declarations(
    declarations_path: str,
    config: Optional[EngineConfig] = None,
    refresh: bool = False,
    cancel_event: Optional[threading.Event] = None
) -> ApplyResult:
    """Load a declaration file, plan it and apply the plan."""
    try:
        logger.info(f"Applying declarations: {declarations_path}")
        config = config or load_engine_config()
        declaration = load_declarations(declarations_path)
        workspace = Workspace(config)
        result = workspace.apply(
            declaration.resources,
            stack_outputs=declaration.outputs,
            refresh=refresh,
            cancel_event=cancel_event,
        )
        if result.status != ApplyStatus.SUCCESS:
            for failed in result.failed:
                logger.error(f"{failed.action.value} {failed.kind.value} '{failed.name}' failed: {failed.error}")
        return result
    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during apply: {e}", exc_info=True)
        raise ConvergeError(f"Apply failed: {e}") from e
