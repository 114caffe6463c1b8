"""Load and validate declaration files (YAML or JSON)."""

import json
from pathlib import Path
from typing import Any, Dict
import yaml
from pydantic import ValidationError as PydanticValidationError
from .declaration_validator import validate_declaration_structure, get_declaration_summary
from .models import Declaration
from ..resources.models import ResourceSpec
from ..utils.errors import DeclarationError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_loader")


def load_declarations(path: str) -> Declaration:
    """
    Load a declaration file.
    
    Args:
        path: Path to a .yaml/.yml or .json declaration file
        
    Returns:
        Declaration with resources in file order
        
    Raises:
        DeclarationError: If file cannot be loaded or is invalid
    """
    decl_path = Path(path)
    
    if not decl_path.exists():
        raise DeclarationError(
            f"Declaration file not found: {path}. "
            "Please check the file path and ensure the file exists."
        )
    
    if not decl_path.is_file():
        raise DeclarationError(f"Path is not a file: {path}. Please provide a declaration file.")
    
    try:
        with open(decl_path, 'r', encoding='utf-8') as f:
            if decl_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise DeclarationError(f"Invalid JSON in declaration file: {e}")
    except yaml.YAMLError as e:
        raise DeclarationError(f"Invalid YAML in declaration file: {e}")
    except OSError as e:
        raise DeclarationError(f"Error reading declaration file: {e}. Please check file permissions and try again.")
    
    declaration = parse_declarations(data)
    
    summary = get_declaration_summary(data or {})
    logger.info(
        f"Loaded declarations from {path} "
        f"(resources: {summary['resource_count']}, outputs: {summary['output_count']})"
    )
    return declaration


def parse_declarations(data: Any) -> Declaration:
    """Validate a parsed document and build the Declaration model."""
    if data is None:
        data = {}
    validate_declaration_structure(data)
    
    specs = []
    for index, entry in enumerate(data.get("resources") or []):
        try:
            specs.append(ResourceSpec(**_with_defaults(entry)))
        except PydanticValidationError as e:
            name = entry.get("name", f"#{index}")
            raise DeclarationError(f"Invalid resource '{name}' at index {index}: {_format_errors(e)}")
    
    return Declaration(
        version=data.get("version", 1),
        resources=specs,
        outputs=data.get("outputs") or {},
    )


def _with_defaults(entry: Dict[str, Any]) -> Dict[str, Any]:
    entry = dict(entry)
    if entry.get("properties") is None:
        entry["properties"] = {}
    if entry.get("depends_on") is None:
        entry["depends_on"] = []
    return entry


def _format_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
