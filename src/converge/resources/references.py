"""Output references embedded in property values.

A string containing ``${name.attr}`` refers to output ``attr`` of the resource
named ``name``; ``${name}`` refers to its ``id`` output. A string that is
exactly one reference resolves to the raw output value, so lists such as
subnet ids survive substitution. References inside longer strings are
interpolated as text.
"""

import re
from typing import Any, Dict, List, Mapping, NamedTuple, Set
from ..utils.errors import ConvergeError

REFERENCE_PATTERN = re.compile(r'\$\{([^}]+)\}')
DEFAULT_OUTPUT = "id"


class OutputRef(NamedTuple):
    """A reference to one output of one resource."""
    name: str
    attr: str
    
    def __str__(self) -> str:
        return f"${{{self.name}.{self.attr}}}"


class MissingOutputError(ConvergeError):
    """Raised when a referenced output has not been recorded."""
    
    def __init__(self, ref: OutputRef):
        self.ref = ref
        super().__init__(f"Output '{ref.attr}' of resource '{ref.name}' is not available")


def parse_reference(expression: str) -> OutputRef:
    """Parse the inside of ``${...}`` into an OutputRef."""
    expression = expression.strip()
    name, _, attr = expression.partition('.')
    return OutputRef(name=name, attr=attr or DEFAULT_OUTPUT)


def find_references(value: Any) -> List[OutputRef]:
    """Collect references from a property value, in order of appearance, without duplicates."""
    refs: List[OutputRef] = []
    
    def walk(item: Any) -> None:
        if isinstance(item, str):
            for match in REFERENCE_PATTERN.findall(item):
                ref = parse_reference(match)
                if ref not in refs:
                    refs.append(ref)
        elif isinstance(item, dict):
            for v in item.values():
                walk(v)
        elif isinstance(item, (list, tuple)):
            for v in item:
                walk(v)
    
    walk(value)
    return refs


def referenced_names(value: Any) -> List[str]:
    """Logical names referenced by a property value, in order of appearance."""
    names: List[str] = []
    for ref in find_references(value):
        if ref.name not in names:
            names.append(ref.name)
    return names


def references_any(value: Any, names: Set[str]) -> bool:
    """True if the value references any of the given logical names."""
    return any(ref.name in names for ref in find_references(value))


def resolve_references(value: Any, outputs: Mapping[str, Mapping[str, Any]]) -> Any:
    """
    Substitute every reference in a property value with recorded outputs.
    
    Args:
        value: Property value (string, dict, list or scalar)
        outputs: Recorded outputs keyed by logical name
        
    Returns:
        A new value with all placeholders replaced
        
    Raises:
        MissingOutputError: If a referenced output is not available
    """
    if isinstance(value, str):
        whole = REFERENCE_PATTERN.fullmatch(value)
        if whole:
            return _lookup(parse_reference(whole.group(1)), outputs)
        return REFERENCE_PATTERN.sub(
            lambda m: str(_lookup(parse_reference(m.group(1)), outputs)),
            value
        )
    if isinstance(value, dict):
        return {k: resolve_references(v, outputs) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_references(v, outputs) for v in value]
    return value


def _lookup(ref: OutputRef, outputs: Mapping[str, Mapping[str, Any]]) -> Any:
    resource_outputs = outputs.get(ref.name)
    if resource_outputs is None or ref.attr not in resource_outputs:
        raise MissingOutputError(ref)
    return resource_outputs[ref.attr]


def resolve_properties(properties: Dict[str, Any], outputs: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """Resolve a whole property bag."""
    return {key: resolve_references(value, outputs) for key, value in properties.items()}
