from .models import ResourceState, ResourceStatus, StateSnapshot
from .store import StateStore, InMemoryStateStore, FileStateStore

__all__ = [
    "ResourceState",
    "ResourceStatus",
    "StateSnapshot",
    "StateStore",
    "InMemoryStateStore",
    "FileStateStore",
]
