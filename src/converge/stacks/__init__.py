from .builder import ResourceHandle, StackBuilder
from .eks import eks_cluster_stack
from .messaging import messaging_stack

STACKS = {
    "eks": eks_cluster_stack,
    "messaging": messaging_stack,
}

__all__ = ["ResourceHandle", "StackBuilder", "eks_cluster_stack", "messaging_stack", "STACKS"]
