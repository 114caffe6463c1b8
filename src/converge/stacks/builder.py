"""In-process declaration builder."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from ..ingest.models import Declaration
from ..resources.kinds import ResourceKind, ReplacementPolicy
from ..resources.models import ResourceSpec
from ..resources.references import OutputRef


@dataclass(frozen=True)
class ResourceHandle:
    """Handle to a declared resource; use ``ref`` to wire its outputs into another resource."""
    name: str
    kind: ResourceKind
    
    def ref(self, attr: str = "id") -> str:
        """Placeholder for one of this resource's outputs."""
        return str(OutputRef(self.name, attr))


class StackBuilder:
    """
    Collects resource declarations in order.
    
    Example:
        stack = StackBuilder()
        vpc = stack.add(ResourceKind.NETWORK, "vpc", cidr="10.0.0.0/16")
        stack.add(ResourceKind.CLUSTER, "eks", vpc_id=vpc.ref("vpc_id"), role_arn="...")
        declaration = stack.build()
    """
    
    def __init__(self):
        self._specs: List[ResourceSpec] = []
        self._outputs: Dict[str, Any] = {}
    
    def add(
        self,
        kind: ResourceKind,
        name: str,
        depends_on: Optional[List[Any]] = None,
        replacement_policy: Optional[ReplacementPolicy] = None,
        **properties: Any
    ) -> ResourceHandle:
        """Declare a resource and return its handle."""
        deps = [d.name if isinstance(d, ResourceHandle) else d for d in (depends_on or [])]
        spec = ResourceSpec(
            name=name,
            kind=kind,
            properties=properties,
            depends_on=deps,
            replacement_policy=replacement_policy,
        )
        self._specs.append(spec)
        return ResourceHandle(name=name, kind=ResourceKind(kind))
    
    def output(self, key: str, value: Any) -> None:
        """Declare a stack output (may be a placeholder from ``ResourceHandle.ref``)."""
        self._outputs[key] = value
    
    def extend(self, other: "StackBuilder") -> "StackBuilder":
        """Append another stack's resources and outputs."""
        self._specs.extend(other._specs)
        self._outputs.update(other._outputs)
        return self
    
    @property
    def specs(self) -> List[ResourceSpec]:
        return list(self._specs)
    
    def build(self) -> Declaration:
        return Declaration(resources=list(self._specs), outputs=dict(self._outputs))
