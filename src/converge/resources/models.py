"""Pydantic models for declared resources."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .kinds import ResourceKind, ReplacementPolicy, get_traits
from .references import referenced_names

NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_-]*$"


class ResourceSpec(BaseModel):
    """User-authored desired state of one resource. Immutable for the life of an apply."""
    
    model_config = ConfigDict(frozen=True, extra="forbid")
    
    name: str = Field(..., pattern=NAME_PATTERN, description="Logical name, unique within a plan")
    kind: ResourceKind = Field(..., description="Resource kind")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Typed property bag, may embed ${name.attr} references")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependencies on other logical names")
    replacement_policy: Optional[ReplacementPolicy] = Field(None, description="Overrides the kind's replacement policy")
    
    @model_validator(mode="after")
    def _check_required_properties(self) -> "ResourceSpec":
        missing = sorted(get_traits(self.kind).required - set(self.properties))
        if missing:
            raise ValueError(f"{self.kind.value} '{self.name}' is missing required properties: {', '.join(missing)}")
        return self
    
    @property
    def dependencies(self) -> List[str]:
        """Explicit dependencies followed by those inferred from property references."""
        deps: List[str] = []
        for name in list(self.depends_on) + referenced_names(self.properties):
            if name not in deps:
                deps.append(name)
        return deps
    
    @property
    def effective_replacement_policy(self) -> ReplacementPolicy:
        """Replacement policy from the spec, falling back to the kind default."""
        if self.replacement_policy is not None:
            return self.replacement_policy
        return get_traits(self.kind).replacement
