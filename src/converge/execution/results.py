"""Pydantic models for apply results (machine-readable report)."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from ..plan.models import ActionType
from ..resources.kinds import ResourceKind


class NodeStatus(str, Enum):
    """Terminal status of one plan entry."""
    APPLIED = "Applied"
    FAILED = "Failed"
    SKIPPED = "Skipped"


class ApplyStatus(str, Enum):
    """Overall status of an apply."""
    SUCCESS = "Success"
    PARTIAL_FAILURE = "PartialFailure"
    FAILED = "Failed"


class NodeResult(BaseModel):
    """Outcome of one plan entry."""
    index: int = Field(..., description="Position in the plan")
    name: str = Field(..., description="Logical name")
    kind: ResourceKind = Field(..., description="Resource kind")
    action: ActionType = Field(..., description="Action taken")
    status: NodeStatus = Field(..., description="Terminal status")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Outputs after the action (Applied only)")
    error: Optional[str] = Field(None, description="Error message (Failed only)")
    error_type: Optional[str] = Field(None, description="Error class name (Failed only)")
    skipped_reason: Optional[str] = Field(None, description="Why the node was not attempted (Skipped only)")
    duration_seconds: float = Field(default=0.0, ge=0, description="Wall time of the provider call")


class ApplyResult(BaseModel):
    """Report of one apply: every plan entry's terminal status plus resolved stack outputs."""
    version: str = Field(default="1.0.0", description="Report contract version")
    status: ApplyStatus = Field(..., description="Overall status")
    results: List[NodeResult] = Field(default_factory=list, description="Per-action results in plan order")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Resolved stack outputs")
    unresolved_outputs: List[str] = Field(default_factory=list, description="Stack outputs that could not be resolved")
    cancelled: bool = Field(default=False, description="Whether dispatch was stopped by cancellation")
    started_at: Optional[datetime] = Field(None, description="Apply start (UTC)")
    finished_at: Optional[datetime] = Field(None, description="Apply end (UTC)")
    
    @property
    def failed(self) -> List[NodeResult]:
        return [r for r in self.results if r.status == NodeStatus.FAILED]
    
    @property
    def skipped(self) -> List[NodeResult]:
        return [r for r in self.results if r.status == NodeStatus.SKIPPED]
    
    @property
    def applied(self) -> List[NodeResult]:
        return [r for r in self.results if r.status == NodeStatus.APPLIED]
    
    def result_for(self, name: str) -> Optional[NodeResult]:
        """Last result recorded for a logical name (the Create of a replacement pair)."""
        matches = [r for r in self.results if r.name == name]
        return matches[-1] if matches else None
    
    def summary(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in NodeStatus}
        for r in self.results:
            counts[r.status.value] += 1
        return counts


def overall_status(results: List[NodeResult]) -> ApplyStatus:
    """Success if nothing failed or was skipped; PartialFailure if something still applied."""
    statuses = {r.status for r in results}
    if NodeStatus.FAILED not in statuses and NodeStatus.SKIPPED not in statuses:
        return ApplyStatus.SUCCESS
    if NodeStatus.APPLIED in statuses:
        return ApplyStatus.PARTIAL_FAILURE
    return ApplyStatus.FAILED
