"""Declarative catalogue of resource kinds and their mutability traits."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Set


class ResourceKind(str, Enum):
    """Provisionable resource kinds."""
    NETWORK = "Network"
    ROLE = "Role"
    CLUSTER = "Cluster"
    NODE_GROUP = "NodeGroup"
    QUEUE = "Queue"
    TOPIC = "Topic"
    SUBSCRIPTION = "Subscription"


class ReplacementPolicy(str, Enum):
    """What to do when an immutable property changes."""
    REPLACE = "replace"
    FORBID = "forbid"


@dataclass(frozen=True)
class KindTraits:
    """Mutability rules for one resource kind."""
    required: FrozenSet[str]
    immutable: FrozenSet[str]
    replacement: ReplacementPolicy
    fully_immutable: bool = False
    
    def immutable_changes(self, changed: Iterable[str]) -> Set[str]:
        """Return the subset of changed property names that cannot be updated in place."""
        changed = set(changed)
        if self.fully_immutable:
            return changed
        return changed & self.immutable


KIND_TRAITS: Dict[ResourceKind, KindTraits] = {
    ResourceKind.NETWORK: KindTraits(
        required=frozenset({"cidr"}),
        immutable=frozenset({"cidr", "max_azs", "subnet_configuration"}),
        replacement=ReplacementPolicy.REPLACE,
    ),
    ResourceKind.ROLE: KindTraits(
        required=frozenset({"assumed_by"}),
        immutable=frozenset({"role_name"}),
        replacement=ReplacementPolicy.REPLACE,
    ),
    # Replacing a control plane drops every workload on it; opt in per resource.
    ResourceKind.CLUSTER: KindTraits(
        required=frozenset({"vpc_id", "role_arn"}),
        immutable=frozenset({"cluster_name", "vpc_id", "role_arn", "subnet_ids"}),
        replacement=ReplacementPolicy.FORBID,
    ),
    ResourceKind.NODE_GROUP: KindTraits(
        required=frozenset({"cluster_name", "instance_type"}),
        immutable=frozenset({"cluster_name", "node_group_name"}),
        replacement=ReplacementPolicy.REPLACE,
    ),
    ResourceKind.QUEUE: KindTraits(
        required=frozenset(),
        immutable=frozenset({"queue_name", "fifo"}),
        replacement=ReplacementPolicy.REPLACE,
    ),
    ResourceKind.TOPIC: KindTraits(
        required=frozenset(),
        immutable=frozenset({"topic_name", "fifo"}),
        replacement=ReplacementPolicy.REPLACE,
    ),
    ResourceKind.SUBSCRIPTION: KindTraits(
        required=frozenset({"topic_arn", "protocol", "endpoint"}),
        immutable=frozenset(),
        replacement=ReplacementPolicy.REPLACE,
        fully_immutable=True,
    ),
}


def get_traits(kind: ResourceKind) -> KindTraits:
    """Get mutability traits for a resource kind."""
    return KIND_TRAITS[ResourceKind(kind)]
