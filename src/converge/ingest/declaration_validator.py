"""Validate declaration document structure before building models."""

from typing import Any, Dict, List
from ..resources.kinds import ResourceKind
from ..utils.errors import DeclarationError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_validator")

SUPPORTED_VERSIONS = [1]
ALLOWED_RESOURCE_FIELDS = {"name", "kind", "properties", "depends_on", "replacement_policy"}


def validate_declaration_structure(data: Any) -> None:
    """
    Validate top-level declaration structure.
    
    Args:
        data: Parsed YAML/JSON document
        
    Raises:
        DeclarationError: If structure is invalid
    """
    if not isinstance(data, dict):
        raise DeclarationError(
            "Declaration must be a mapping with a 'resources' list. "
            "See the README for the declaration format."
        )
    
    version = data.get("version", 1)
    if version not in SUPPORTED_VERSIONS:
        raise DeclarationError(
            f"Unsupported declaration version: {version}. "
            f"Supported versions: {', '.join(str(v) for v in SUPPORTED_VERSIONS)}"
        )
    
    resources = data.get("resources")
    if resources is None:
        logger.warning("Declaration has no 'resources' key - treating as empty")
    elif not isinstance(resources, list):
        raise DeclarationError("Declaration 'resources' must be a list")
    
    outputs = data.get("outputs", {})
    if outputs is not None and not isinstance(outputs, dict):
        raise DeclarationError("Declaration 'outputs' must be a mapping")
    
    problems = []
    for index, resource in enumerate(resources or []):
        for problem in validate_resource_entry(resource):
            problems.append(f"resources[{index}]: {problem}")
    if problems:
        raise DeclarationError("Invalid declaration:\n  " + "\n  ".join(problems))
    
    logger.debug("Declaration structure validation passed")


def validate_resource_entry(resource: Any) -> List[str]:
    """
    Validate a single resource entry.
    
    Returns:
        List of problems (empty if valid)
    """
    if not isinstance(resource, dict):
        return ["resource entry must be a mapping"]
    
    problems = []
    for required in ("name", "kind"):
        if required not in resource:
            problems.append(f"missing required field '{required}'")
    
    unknown = sorted(set(resource) - ALLOWED_RESOURCE_FIELDS)
    if unknown:
        problems.append(f"unknown fields: {', '.join(unknown)}")
    
    kind = resource.get("kind")
    valid_kinds = [k.value for k in ResourceKind]
    if kind is not None and kind not in valid_kinds:
        problems.append(f"unknown kind '{kind}' (expected one of: {', '.join(valid_kinds)})")
    
    if "properties" in resource and not isinstance(resource["properties"], dict):
        problems.append("'properties' must be a mapping")
    
    if "depends_on" in resource and not isinstance(resource["depends_on"], list):
        problems.append("'depends_on' must be a list")
    
    return problems


def get_declaration_summary(data: Dict[str, Any]) -> Dict[str, Any]:
    """Count resources per kind."""
    resources = data.get("resources") or []
    kinds: Dict[str, int] = {}
    for resource in resources:
        kind = resource.get("kind", "unknown")
        kinds[kind] = kinds.get(kind, 0) + 1
    return {
        "version": data.get("version", 1),
        "resource_count": len(resources),
        "kinds": kinds,
        "output_count": len(data.get("outputs") or {}),
    }
