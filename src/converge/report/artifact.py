"""CI/CD artifact generation from ApplyResult."""

import json
from datetime import datetime, timezone
from pathlib import Path
from .. import __version__
from ..execution.results import ApplyResult
from ..utils.errors import ConvergeError
from ..utils.logging import get_logger

logger = get_logger("report.artifact")


def generate_artifacts(result: ApplyResult, output_dir: Path) -> None:
    """
    Generate CI/CD artifacts from an ApplyResult.
    
    Creates the following files in output_dir:
    - apply_result.json: Full ApplyResult
    - summary.json: Overall status, counts and failed nodes
    - metadata.json: Report metadata
    
    Args:
        result: ApplyResult from an apply
        output_dir: Directory to write artifacts to
        
    Raises:
        ConvergeError: If file write fails
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConvergeError(f"Failed to create output directory: {e}")
    
    _write_json(output_dir / "apply_result.json", result.model_dump(mode="json"))
    
    summary = {
        "status": result.status.value,
        "counts": result.summary(),
        "failed": [
            {"name": node.name, "action": node.action.value, "error": node.error}
            for node in result.failed
        ],
        "skipped": [node.name for node in result.skipped],
        "outputs": result.outputs,
        "cancelled": result.cancelled,
    }
    _write_json(output_dir / "summary.json", summary)
    
    metadata = {
        "converge_version": __version__,
        "report_version": result.version,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "generator": "converge report artifact",
    }
    _write_json(output_dir / "metadata.json", metadata)
    
    logger.info(f"Generated artifacts in: {output_dir}")


def _write_json(path: Path, payload) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, default=str)
        logger.debug(f"Written {path.name}: {path}")
    except (OSError, TypeError) as e:
        raise ConvergeError(f"Failed to write {path.name}: {e}")
