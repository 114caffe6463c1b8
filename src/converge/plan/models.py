"""Pydantic models for execution plans (computed once, never mutated)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from ..resources.kinds import ResourceKind
from ..resources.models import ResourceSpec
from ..state.models import ResourceState


class ActionType(str, Enum):
    """Action the executor takes for one plan entry."""
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    NO_OP = "NoOp"


class PlannedAction(BaseModel):
    """One plan entry bound to one graph node (or to an orphaned state entry)."""
    
    model_config = ConfigDict(frozen=True)
    
    index: int = Field(..., ge=0, description="Position in the plan")
    action: ActionType = Field(..., description="Action to take")
    name: str = Field(..., description="Logical name")
    kind: ResourceKind = Field(..., description="Resource kind")
    spec: Optional[ResourceSpec] = Field(None, description="Desired spec (None for orphan deletes)")
    prior_state: Optional[ResourceState] = Field(None, description="Stored state the action was planned against")
    changed_properties: Tuple[str, ...] = Field(default=(), description="Properties that differ from stored state")
    waits_for: Tuple[int, ...] = Field(default=(), description="Indices of earlier actions that must succeed first")
    replacement: bool = Field(default=False, description="Part of a Delete+Create replacement pair")
    reason: str = Field(default="", description="Why this action was chosen")
    
    @property
    def label(self) -> str:
        return f"{self.action.value} {self.kind.value} '{self.name}'"


class Plan(BaseModel):
    """Ordered actions reconciling desired state with last-known state."""
    
    model_config = ConfigDict(frozen=True)
    
    actions: Tuple[PlannedAction, ...] = Field(default=(), description="Actions in a valid topological order")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the plan was computed")
    
    def __len__(self) -> int:
        return len(self.actions)
    
    @property
    def has_changes(self) -> bool:
        """True if any action is not a NoOp."""
        return any(a.action != ActionType.NO_OP for a in self.actions)
    
    def summary(self) -> Dict[str, int]:
        """Count of actions per action type."""
        counts = {action.value: 0 for action in ActionType}
        for a in self.actions:
            counts[a.action.value] += 1
        return counts
    
    def for_name(self, name: str) -> List[PlannedAction]:
        """All actions bound to one logical name (two for a replacement)."""
        return [a for a in self.actions if a.name == name]
    
    def names_in_order(self) -> List[str]:
        """Logical names in plan order, without repeats."""
        seen: List[str] = []
        for a in self.actions:
            if a.name not in seen:
                seen.append(a.name)
        return seen
