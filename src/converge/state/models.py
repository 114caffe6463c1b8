"""Pydantic models for persisted resource state."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional
from pydantic import BaseModel, Field
from ..resources.kinds import ResourceKind


class ResourceStatus(str, Enum):
    """Lifecycle status of a stored resource."""
    PENDING = "Pending"
    APPLIED = "Applied"
    FAILED = "Failed"
    DELETED = "Deleted"


class ResourceState(BaseModel):
    """Last-applied state of one resource. Owned by the state store."""
    name: str = Field(..., description="Logical name")
    kind: ResourceKind = Field(..., description="Resource kind")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Last-applied declared properties (placeholders unresolved)")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Provider-assigned outputs (ids, ARNs, subnet ids)")
    resource_id: Optional[str] = Field(None, description="Provider-assigned primary identifier")
    dependencies: List[str] = Field(default_factory=list, description="Logical names this resource depended on when applied")
    status: ResourceStatus = Field(default=ResourceStatus.PENDING, description="Lifecycle status")
    applied_at: Optional[datetime] = Field(None, description="Timestamp of the last successful apply (UTC)")
    error: Optional[str] = Field(None, description="Last error, when status is Failed")


class StateSnapshot(Mapping[str, ResourceState]):
    """Read-only point-in-time copy of the state store."""
    
    def __init__(self, states: Optional[Mapping[str, ResourceState]] = None):
        self._states: Dict[str, ResourceState] = {
            name: state.model_copy(deep=True) for name, state in (states or {}).items()
        }
    
    def __getitem__(self, name: str) -> ResourceState:
        return self._states[name].model_copy(deep=True)
    
    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._states))
    
    def __len__(self) -> int:
        return len(self._states)
    
    def without(self, names) -> "StateSnapshot":
        """Return a new snapshot with the given names dropped."""
        dropped = set(names)
        return StateSnapshot({n: s for n, s in self._states.items() if n not in dropped})
