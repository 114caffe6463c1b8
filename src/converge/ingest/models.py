"""Pydantic models for declaration input."""

from typing import Any, Dict, List
from pydantic import BaseModel, Field
from ..resources.models import ResourceSpec


class Declaration(BaseModel):
    """A declared set of resources plus stack outputs to report after apply."""
    version: int = Field(default=1, description="Declaration format version")
    resources: List[ResourceSpec] = Field(default_factory=list, description="Resources in declaration order")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Stack outputs, may embed ${name.attr} references")
    
    def resource_names(self) -> List[str]:
        return [spec.name for spec in self.resources]
    
    def to_document(self) -> Dict[str, Any]:
        """Plain dictionary in declaration-file layout (omits unset replacement policies)."""
        resources = []
        for spec in self.resources:
            entry = spec.model_dump(mode="json")
            if entry.get("replacement_policy") is None:
                entry.pop("replacement_policy", None)
            if not entry.get("depends_on"):
                entry.pop("depends_on", None)
            resources.append(entry)
        return {"version": self.version, "resources": resources, "outputs": dict(self.outputs)}
