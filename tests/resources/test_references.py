"""Tests for output references and resource specs."""

import pytest
from pydantic import ValidationError as PydanticValidationError
from converge.resources.kinds import ReplacementPolicy, ResourceKind, get_traits
from converge.resources.models import ResourceSpec
from converge.resources.references import (
    MissingOutputError,
    OutputRef,
    find_references,
    referenced_names,
    references_any,
    resolve_properties,
    resolve_references,
)

OUTPUTS = {
    "vpc": {"id": "vpc-1", "private_subnet_ids": ["subnet-a", "subnet-b"]},
    "role": {"id": "role-1", "arn": "arn:aws:iam::1:role/r"},
}


class TestFindReferences:
    
    def test_nested_values(self):
        value = {"a": "${vpc.id}", "b": ["x", {"c": "${role.arn}"}], "d": 5}
        
        assert find_references(value) == [OutputRef("vpc", "id"), OutputRef("role", "arn")]
    
    def test_bare_name_means_id(self):
        assert find_references("${vpc}") == [OutputRef("vpc", "id")]
    
    def test_deduplicated_in_order(self):
        value = ["${b.x}", "${a.y}", "${b.x}", "${a.z}"]
        
        assert referenced_names(value) == ["b", "a"]
        assert len(find_references(value)) == 3
    
    def test_references_any(self):
        assert references_any({"k": "${vpc.id}"}, {"vpc"})
        assert not references_any({"k": "vpc"}, {"vpc"})
    
    def test_str_round_trip(self):
        assert str(OutputRef("vpc", "id")) == "${vpc.id}"


class TestResolve:
    
    def test_whole_value_keeps_type(self):
        assert resolve_references("${vpc.private_subnet_ids}", OUTPUTS) == ["subnet-a", "subnet-b"]
    
    def test_interpolation(self):
        assert resolve_references("role=${role.arn};", OUTPUTS) == "role=arn:aws:iam::1:role/r;"
    
    def test_properties(self):
        properties = {"vpc_id": "${vpc}", "tags": {"role": "${role.id}"}, "count": 2}
        
        assert resolve_properties(properties, OUTPUTS) == {
            "vpc_id": "vpc-1",
            "tags": {"role": "role-1"},
            "count": 2,
        }
    
    def test_missing_output(self):
        with pytest.raises(MissingOutputError) as exc_info:
            resolve_references("${vpc.arn}", OUTPUTS)
        assert exc_info.value.ref == OutputRef("vpc", "arn")
    
    def test_missing_resource(self):
        with pytest.raises(MissingOutputError):
            resolve_references(["${ghost.id}"], OUTPUTS)


class TestResourceSpec:
    
    def test_required_properties(self):
        with pytest.raises(PydanticValidationError, match="cidr"):
            ResourceSpec(name="vpc", kind=ResourceKind.NETWORK, properties={})
    
    def test_invalid_name(self):
        with pytest.raises(PydanticValidationError):
            ResourceSpec(name="bad name", kind=ResourceKind.QUEUE)
    
    def test_dotted_name_rejected(self):
        with pytest.raises(PydanticValidationError):
            ResourceSpec(name="vpc.main", kind=ResourceKind.NETWORK)
    
    def test_unknown_field_rejected(self):
        with pytest.raises(PydanticValidationError):
            ResourceSpec(name="q", kind=ResourceKind.QUEUE, color="red")
    
    def test_kind_from_string(self):
        assert ResourceSpec(name="q", kind="Queue").kind == ResourceKind.QUEUE
    
    def test_dependencies_explicit_first(self):
        spec = ResourceSpec(
            name="s",
            kind=ResourceKind.QUEUE,
            properties={"a": "${x.id}", "b": "${y.arn}"},
            depends_on=["y", "z"],
        )
        
        assert spec.dependencies == ["y", "z", "x"]
    
    def test_replacement_policy_defaults_to_kind(self):
        cluster = ResourceSpec(name="c", kind=ResourceKind.CLUSTER, properties={"vpc_id": "v", "role_arn": "r"})
        queue = ResourceSpec(name="q", kind=ResourceKind.QUEUE, replacement_policy="forbid")
        
        assert cluster.effective_replacement_policy == ReplacementPolicy.FORBID
        assert queue.effective_replacement_policy == ReplacementPolicy.FORBID
    
    def test_fully_immutable_kind(self):
        traits = get_traits(ResourceKind.SUBSCRIPTION)
        
        assert traits.immutable_changes(["protocol", "anything"]) == {"protocol", "anything"}
        assert get_traits(ResourceKind.QUEUE).immutable_changes(["visibility_timeout_seconds"]) == set()
