"""Plan engine: order the dependency graph and classify each node against stored state."""

import json
from typing import Any, Dict, List, Optional, Set, Tuple
import networkx as nx
from .models import ActionType, Plan, PlannedAction
from ..graph.dependency_graph import DependencyGraph, GraphNode, ordered_topological_sort
from ..resources.kinds import ReplacementPolicy, get_traits
from ..resources.references import references_any
from ..state.models import ResourceStatus, StateSnapshot
from ..utils.errors import PlanError
from ..utils.logging import get_logger

logger = get_logger("plan.engine")

_APPLY = "apply"
_ORPHAN = "orphan"


def plan(graph: DependencyGraph, prior_state: StateSnapshot) -> Plan:
    """
    Compute an execution plan.
    
    Desired nodes are ordered by dependency with ties broken by declaration
    order. Stored resources that are no longer declared are deleted after
    everything that depended on them when they were last applied.
    
    Args:
        graph: Validated dependency graph of desired resources
        prior_state: Snapshot of the state store
        
    Returns:
        Plan whose order is a valid topological order of the graph
        
    Raises:
        PlanError: If an immutable property would change and replacement is forbidden
    """
    nodes = {name: graph.get_node(name).with_state(prior_state.get(name)) for name in graph.names}
    orphans = [name for name in prior_state if name not in nodes]
    
    order_graph, priority = _ordering_graph(graph, nodes, orphans, prior_state)
    order = ordered_topological_sort(order_graph, key=lambda k: priority[k])
    
    actions: List[PlannedAction] = []
    final_index: Dict[Tuple[str, str], int] = {}
    replaced: Set[str] = set()
    
    for key in order:
        role, name = key
        waits = tuple(sorted(final_index[p] for p in order_graph.predecessors(key)))
        
        if role == _ORPHAN:
            state = prior_state[name]
            actions.append(PlannedAction(
                index=len(actions),
                action=ActionType.DELETE,
                name=name,
                kind=state.kind,
                prior_state=state,
                waits_for=waits,
                reason="no longer declared",
            ))
            final_index[key] = len(actions) - 1
            continue
        
        node = nodes[name]
        action, changed, reason = _classify(node, replaced)
        
        if action == "replace":
            replaced.add(name)
            delete_index = len(actions)
            actions.append(PlannedAction(
                index=delete_index,
                action=ActionType.DELETE,
                name=name,
                kind=node.state.kind,
                spec=node.spec,
                prior_state=node.state,
                changed_properties=changed,
                waits_for=waits,
                replacement=True,
                reason=reason,
            ))
            actions.append(PlannedAction(
                index=delete_index + 1,
                action=ActionType.CREATE,
                name=name,
                kind=node.spec.kind,
                spec=node.spec,
                prior_state=node.state,
                changed_properties=changed,
                waits_for=tuple(sorted(waits + (delete_index,))),
                replacement=True,
                reason=reason,
            ))
        else:
            actions.append(PlannedAction(
                index=len(actions),
                action=action,
                name=name,
                kind=node.spec.kind,
                spec=node.spec,
                prior_state=node.state,
                changed_properties=changed,
                waits_for=waits,
                reason=reason,
            ))
        final_index[key] = len(actions) - 1
    
    result = Plan(actions=tuple(actions))
    counts = result.summary()
    logger.info(
        f"Planned {len(actions)} actions: "
        + ", ".join(f"{count} {action}" for action, count in counts.items() if count)
    )
    return result


def plan_destroy(prior_state: StateSnapshot) -> Plan:
    """Plan deletion of every stored resource, dependents first."""
    return plan(DependencyGraph(), prior_state)


def _ordering_graph(
    graph: DependencyGraph,
    nodes: Dict[str, GraphNode],
    orphans: List[str],
    prior_state: StateSnapshot
) -> Tuple[nx.DiGraph, Dict[Tuple[str, str], Tuple[int, int]]]:
    """Graph over desired applies and orphan deletes; edge u -> v means u runs first."""
    order_graph = nx.DiGraph()
    priority: Dict[Tuple[str, str], Tuple[int, int]] = {}
    
    for name, node in nodes.items():
        key = (_APPLY, name)
        order_graph.add_node(key)
        priority[key] = (0, node.index)
    for position, name in enumerate(orphans):
        key = (_ORPHAN, name)
        order_graph.add_node(key)
        priority[key] = (1, position)
    
    for dep, dependent in graph.graph.edges:
        order_graph.add_edge((_APPLY, dep), (_APPLY, dependent))
    
    orphan_set = set(orphans)
    for name, node in nodes.items():
        if node.state is None:
            continue
        for old_dep in node.state.dependencies:
            if old_dep in orphan_set:
                order_graph.add_edge((_APPLY, name), (_ORPHAN, old_dep))
    for name in orphans:
        for old_dep in prior_state[name].dependencies:
            if old_dep in orphan_set and old_dep != name:
                order_graph.add_edge((_ORPHAN, name), (_ORPHAN, old_dep))
    
    return order_graph, priority


def _classify(node: GraphNode, replaced: Set[str]) -> Tuple[Any, Tuple[str, ...], str]:
    """Return (action or "replace", changed property names, reason) for a desired node."""
    spec = node.spec
    state = node.state
    
    if state is None or state.status == ResourceStatus.DELETED:
        return ActionType.CREATE, (), "not yet created"
    
    if state.kind != spec.kind:
        return "replace", (), f"kind changed from {state.kind.value} to {spec.kind.value}"
    
    changed = set(_changed_properties(state.properties, spec.properties))
    changed.update(
        key for key, value in spec.properties.items()
        if references_any(value, replaced)
    )
    changed_sorted = tuple(sorted(changed))
    
    if not changed:
        if state.status == ResourceStatus.FAILED:
            return ActionType.UPDATE, (), "previous apply failed"
        if sorted(state.dependencies) != sorted(spec.dependencies):
            # Recorded without a provider call so later orphan deletes order correctly.
            return ActionType.NO_OP, (), "dependencies changed"
        return ActionType.NO_OP, (), "up to date"
    
    immutable = get_traits(spec.kind).immutable_changes(changed)
    if immutable:
        if spec.effective_replacement_policy == ReplacementPolicy.FORBID:
            raise PlanError(
                f"{spec.kind.value} '{spec.name}' cannot update immutable properties "
                f"{', '.join(sorted(immutable))} without a replacement policy. "
                "Set replacement_policy: replace to allow delete-and-recreate.",
                resource=spec.name
            )
        return "replace", changed_sorted, f"immutable properties changed: {', '.join(sorted(immutable))}"
    
    return ActionType.UPDATE, changed_sorted, f"properties changed: {', '.join(changed_sorted)}"


def _changed_properties(stored: Dict[str, Any], desired: Dict[str, Any]) -> List[str]:
    """Names of properties whose declared values differ (including added and removed keys)."""
    changed = []
    for key in set(stored) | set(desired):
        if key not in stored or key not in desired:
            changed.append(key)
        elif _normalize(stored[key]) != _normalize(desired[key]):
            changed.append(key)
    return sorted(changed)


def _normalize(value: Any) -> Any:
    """Compare values the way they round-trip through persisted JSON."""
    return json.loads(json.dumps(value, sort_keys=True, default=str))
