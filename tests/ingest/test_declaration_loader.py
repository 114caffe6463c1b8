"""Tests for declaration loading and validation."""

import json
import pytest
from converge.ingest.declaration_loader import load_declarations, parse_declarations
from converge.ingest.declaration_validator import get_declaration_summary, validate_resource_entry
from converge.resources.kinds import ResourceKind
from converge.utils.errors import DeclarationError, ValidationError

YAML_DECLARATION = """
version: 1
resources:
  - name: vpc
    kind: Network
    properties:
      cidr: 10.0.0.0/16
  - name: eks
    kind: Cluster
    depends_on: [vpc]
    replacement_policy: replace
    properties:
      vpc_id: ${vpc.id}
      role_arn: arn:aws:iam::123456789012:role/eks
outputs:
  clusterName: ${eks.name}
"""


@pytest.fixture
def yaml_file(tmp_path):
    path = tmp_path / "stack.yaml"
    path.write_text(YAML_DECLARATION)
    return path


class TestLoadDeclarations:
    """Test loading declaration files."""
    
    def test_load_yaml(self, yaml_file):
        declaration = load_declarations(str(yaml_file))
        
        assert declaration.resource_names() == ["vpc", "eks"]
        assert declaration.resources[1].kind == ResourceKind.CLUSTER
        assert declaration.resources[1].properties["vpc_id"] == "${vpc.id}"
        assert declaration.outputs == {"clusterName": "${eks.name}"}
    
    def test_load_json(self, tmp_path):
        path = tmp_path / "stack.json"
        path.write_text(json.dumps({"resources": [{"name": "q", "kind": "Queue"}]}))
        
        declaration = load_declarations(str(path))
        
        assert declaration.version == 1
        assert declaration.resources[0].properties == {}
        assert declaration.resources[0].depends_on == []
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(DeclarationError, match="not found"):
            load_declarations(str(tmp_path / "absent.yaml"))
    
    def test_directory_rejected(self, tmp_path):
        with pytest.raises(DeclarationError, match="not a file"):
            load_declarations(str(tmp_path))
    
    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("resources: [unclosed")
        
        with pytest.raises(DeclarationError, match="Invalid YAML"):
            load_declarations(str(path))
    
    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        
        with pytest.raises(DeclarationError, match="Invalid JSON"):
            load_declarations(str(path))
    
    def test_empty_file_is_empty_declaration(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        
        assert load_declarations(str(path)).resources == []
    
    def test_to_document_round_trip(self, yaml_file):
        declaration = load_declarations(str(yaml_file))
        document = declaration.to_document()
        
        assert document["resources"][0] == {
            "name": "vpc",
            "kind": "Network",
            "properties": {"cidr": "10.0.0.0/16"},
        }
        assert document["resources"][1]["replacement_policy"] == "replace"
        assert parse_declarations(document).resource_names() == ["vpc", "eks"]


class TestParseDeclarations:
    """Structural and model validation."""
    
    def test_declaration_error_is_validation_error(self):
        assert issubclass(DeclarationError, ValidationError)
    
    def test_not_a_mapping(self):
        with pytest.raises(DeclarationError, match="mapping"):
            parse_declarations(["a"])
    
    def test_unsupported_version(self):
        with pytest.raises(DeclarationError, match="version"):
            parse_declarations({"version": 2, "resources": []})
    
    def test_resources_must_be_list(self):
        with pytest.raises(DeclarationError, match="must be a list"):
            parse_declarations({"resources": {"name": "q"}})
    
    def test_unknown_kind(self):
        with pytest.raises(DeclarationError, match="unknown kind 'Bucket'"):
            parse_declarations({"resources": [{"name": "b", "kind": "Bucket"}]})
    
    def test_missing_required_property(self):
        with pytest.raises(DeclarationError) as exc_info:
            parse_declarations({"resources": [{"name": "vpc", "kind": "Network"}]})
        
        assert "'vpc' at index 0" in str(exc_info.value)
        assert "cidr" in str(exc_info.value)
    
    def test_all_entry_problems_reported(self):
        with pytest.raises(DeclarationError) as exc_info:
            parse_declarations({"resources": [{"kind": "Queue"}, {"name": "x", "kind": "Queue", "extra": 1}]})
        
        message = str(exc_info.value)
        assert "resources[0]: missing required field 'name'" in message
        assert "resources[1]: unknown fields: extra" in message
    
    def test_validate_resource_entry(self):
        problems = validate_resource_entry({"name": "x", "kind": "Queue", "properties": [], "depends_on": "y"})
        
        assert "'properties' must be a mapping" in problems
        assert "'depends_on' must be a list" in problems
    
    def test_summary(self):
        summary = get_declaration_summary({
            "resources": [{"kind": "Queue"}, {"kind": "Queue"}, {"kind": "Topic"}],
            "outputs": {"a": 1},
        })
        
        assert summary["resource_count"] == 3
        assert summary["kinds"] == {"Queue": 2, "Topic": 1}
        assert summary["output_count"] == 1
