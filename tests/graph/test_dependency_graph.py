"""Tests for dependency graph."""

import pytest
from converge.graph.dependency_graph import DependencyGraph, build
from converge.resources.kinds import ResourceKind
from converge.resources.models import ResourceSpec
from converge.utils.errors import CycleError, DuplicateNameError, UnresolvedReferenceError


def _queue(name, depends_on=None, **properties):
    return ResourceSpec(name=name, kind=ResourceKind.QUEUE, properties=properties, depends_on=depends_on or [])


class TestDependencyGraph:
    """Test dependency graph construction."""
    
    def test_build_graph_from_specs(self, cluster_specs):
        """Explicit and inferred dependencies become edges dependency -> dependent."""
        graph = DependencyGraph.build(cluster_specs)
        
        assert graph.graph.number_of_nodes() == 3
        assert graph.graph.number_of_edges() == 2
        assert graph.graph.has_edge("vpc", "eks")
        assert graph.graph.has_edge("cluster-role", "eks")
    
    def test_inferred_dependencies_without_depends_on(self):
        """A placeholder reference is enough to create an edge."""
        specs = [
            _queue("a"),
            _queue("b", redrive="${a.arn}"),
        ]
        graph = build(specs)
        
        assert graph.get_dependencies("b") == ["a"]
        assert graph.get_dependents("a") == ["b"]
    
    def test_dependencies_deduplicated(self):
        """Explicit and inferred references to the same name yield one dependency."""
        specs = [
            _queue("a"),
            _queue("b", depends_on=["a"], redrive="${a.arn}", dlq="${a}"),
        ]
        graph = build(specs)
        
        assert graph.get_dependencies("b") == ["a"]
        assert graph.graph.number_of_edges() == 1
    
    def test_downstream_and_upstream(self):
        """Transitive closure in both directions."""
        specs = [_queue("a"), _queue("b", depends_on=["a"]), _queue("c", depends_on=["b"]), _queue("d")]
        graph = build(specs)
        
        assert graph.get_downstream_resources("a") == {"b", "c"}
        assert graph.get_upstream_resources("c") == {"a", "b"}
        assert graph.get_downstream_resources("d") == set()
        assert graph.get_downstream_resources("missing") == set()
    
    def test_accessors(self, cluster_specs):
        graph = build(cluster_specs)
        
        assert "vpc" in graph
        assert "nope" not in graph
        assert len(graph) == 3
        assert graph.names == ["vpc", "cluster-role", "eks"]
        assert graph.get_node("eks").index == 2
        assert graph.get_spec("nope") is None
        assert [s.name for s in graph.get_all_specs()] == ["vpc", "cluster-role", "eks"]
    
    def test_empty_graph(self):
        graph = build([])
        
        assert len(graph) == 0
        assert graph.topological_order() == []


class TestTopologicalOrder:
    """Ordering is deterministic: dependencies first, ties by declaration order."""
    
    def test_dependencies_before_dependents(self, cluster_specs):
        order = build(cluster_specs).topological_order()
        
        assert order.index("vpc") < order.index("eks")
        assert order.index("cluster-role") < order.index("eks")
    
    def test_ties_broken_by_declaration_order(self):
        specs = [_queue("z", depends_on=["m"]), _queue("y"), _queue("m"), _queue("a")]
        order = build(specs).topological_order()
        
        assert order == ["y", "m", "z", "a"]
    
    def test_order_is_stable(self, cluster_specs):
        assert build(cluster_specs).topological_order() == build(cluster_specs).topological_order()


class TestValidation:
    """Invalid resource sets are rejected before anything is touched."""
    
    def test_duplicate_names(self):
        with pytest.raises(DuplicateNameError) as exc_info:
            build([_queue("a"), _queue("b"), _queue("a")])
        
        assert exc_info.value.names == ["a"]
    
    def test_unresolved_reference(self):
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            build([_queue("a", target="${ghost.arn}")])
        
        assert exc_info.value.source == "a"
        assert exc_info.value.target == "ghost"
    
    def test_unresolved_depends_on(self):
        with pytest.raises(UnresolvedReferenceError):
            build([_queue("a", depends_on=["ghost"])])
    
    def test_cycle_detected(self):
        specs = [
            _queue("a", depends_on=["c"]),
            _queue("b", depends_on=["a"]),
            _queue("c", depends_on=["b"]),
        ]
        with pytest.raises(CycleError) as exc_info:
            build(specs)
        
        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}
        assert "cycle" in str(exc_info.value).lower()
    
    def test_self_reference_is_a_cycle(self):
        with pytest.raises(CycleError):
            build([_queue("a", depends_on=["a"])])
