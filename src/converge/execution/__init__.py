from .executor import Executor, resolve_stack_outputs
from .refresh import refresh_snapshot
from .results import ApplyResult, ApplyStatus, NodeResult, NodeStatus, overall_status

__all__ = [
    "Executor",
    "resolve_stack_outputs",
    "refresh_snapshot",
    "ApplyResult",
    "ApplyStatus",
    "NodeResult",
    "NodeStatus",
    "overall_status",
]
