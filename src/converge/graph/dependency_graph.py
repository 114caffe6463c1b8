"""Build directed dependency graph from declared resources."""

from collections import Counter
from dataclasses import dataclass, replace
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Set
import networkx as nx
from ..resources.models import ResourceSpec
from ..state.models import ResourceState
from ..utils.errors import CycleError, DuplicateNameError, UnresolvedReferenceError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


@dataclass(frozen=True)
class GraphNode:
    """One declared resource, its position in the declaration and its stored state (if any)."""
    spec: ResourceSpec
    index: int
    state: Optional[ResourceState] = None
    
    @property
    def name(self) -> str:
        return self.spec.name
    
    def with_state(self, state: Optional[ResourceState]) -> "GraphNode":
        return replace(self, state=state)


class DependencyGraph:
    """Directed acyclic dependency graph: nodes=resources, edges=dependency -> dependent."""
    
    def __init__(self):
        self.graph = nx.DiGraph()
        self._nodes: Dict[str, GraphNode] = {}
    
    @classmethod
    def build(cls, specs: Iterable[ResourceSpec]) -> "DependencyGraph":
        """
        Build and validate a dependency graph. Pure: nothing outside the graph is touched.
        
        Args:
            specs: Declared resources, in declaration order
            
        Returns:
            Validated DependencyGraph
            
        Raises:
            DuplicateNameError: If two specs share a logical name
            UnresolvedReferenceError: If a spec references an undeclared name
            CycleError: If dependencies form a cycle
        """
        specs = list(specs)
        
        counts = Counter(spec.name for spec in specs)
        duplicates = [name for name, count in counts.items() if count > 1]
        if duplicates:
            raise DuplicateNameError(duplicates)
        
        dep_graph = cls()
        for index, spec in enumerate(specs):
            dep_graph._nodes[spec.name] = GraphNode(spec=spec, index=index)
            dep_graph.graph.add_node(spec.name)
        
        for spec in specs:
            for dep_name in spec.dependencies:
                if dep_name not in dep_graph._nodes:
                    raise UnresolvedReferenceError(spec.name, dep_name)
                dep_graph.graph.add_edge(dep_name, spec.name)
                logger.debug(f"Added dependency edge: {dep_name} -> {spec.name}")
        
        cycle = dep_graph.find_cycle()
        if cycle:
            raise CycleError(cycle)
        
        logger.info(f"Built dependency graph with {dep_graph.graph.number_of_nodes()} nodes and {dep_graph.graph.number_of_edges()} edges")
        return dep_graph
    
    def find_cycle(self) -> Optional[List[str]]:
        """Depth-first search for a cycle; returns the closed path (first node repeated) or None."""
        try:
            edges = nx.find_cycle(self.graph)
        except nx.NetworkXNoCycle:
            return None
        path = [u for u, _ in edges]
        path.append(edges[0][0])
        return path
    
    @property
    def names(self) -> List[str]:
        """Logical names in declaration order."""
        return sorted(self._nodes, key=lambda n: self._nodes[n].index)
    
    def __contains__(self, name: str) -> bool:
        return name in self._nodes
    
    def __len__(self) -> int:
        return len(self._nodes)
    
    def get_node(self, name: str) -> Optional[GraphNode]:
        """Get graph node by logical name."""
        return self._nodes.get(name)
    
    def get_spec(self, name: str) -> Optional[ResourceSpec]:
        """Get declared resource by logical name."""
        node = self._nodes.get(name)
        return node.spec if node else None
    
    def get_all_specs(self) -> List[ResourceSpec]:
        """All declared resources in declaration order."""
        return [self._nodes[name].spec for name in self.names]
    
    def get_dependencies(self, name: str) -> List[str]:
        """Direct dependencies of a resource, in the order it declares them."""
        node = self._nodes.get(name)
        return list(node.spec.dependencies) if node else []
    
    def get_dependents(self, name: str) -> List[str]:
        """Direct dependents of a resource, in declaration order."""
        if name not in self.graph:
            return []
        return sorted(self.graph.successors(name), key=lambda n: self._nodes[n].index)
    
    def get_downstream_resources(self, name: str) -> Set[str]:
        """All resources that transitively depend on the given resource."""
        if name not in self.graph:
            return set()
        return set(nx.descendants(self.graph, name))
    
    def get_upstream_resources(self, name: str) -> Set[str]:
        """All resources the given resource transitively depends on."""
        if name not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, name))
    
    def topological_order(self) -> List[str]:
        """Dependency order with ties broken by declaration order."""
        return ordered_topological_sort(self.graph, key=lambda n: self._nodes[n].index)


def ordered_topological_sort(graph: nx.DiGraph, key: Callable[[Hashable], object]) -> List:
    """
    Topologically sort by repeatedly taking the zero-in-degree node with the smallest key.
    
    Identical input yields identical output, which keeps dry runs reproducible.
    """
    try:
        return list(nx.lexicographical_topological_sort(graph, key=key))
    except nx.NetworkXUnfeasible as e:
        raise CycleError(_cycle_path(graph)) from e


def _cycle_path(graph: nx.DiGraph) -> List[str]:
    edges = nx.find_cycle(graph)
    return [str(u) for u, _ in edges] + [str(edges[0][0])]


def build(specs: Iterable[ResourceSpec]) -> DependencyGraph:
    """Build a validated dependency graph from declared resources."""
    return DependencyGraph.build(specs)
