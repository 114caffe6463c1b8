"""Tests for the converge CLI."""

import json
import pytest
import yaml
from click.testing import CliRunner
from converge import __version__
from converge.cli.main import cli

DECLARATION = {
    "version": 1,
    "resources": [
        {"name": "vpc", "kind": "Network", "properties": {"cidr": "10.0.0.0/16"}},
        {"name": "cluster-role", "kind": "Role", "properties": {"assumed_by": {"service": "eks.amazonaws.com"}}},
        {
            "name": "eks",
            "kind": "Cluster",
            "depends_on": ["vpc", "cluster-role"],
            "properties": {"vpc_id": "${vpc.id}", "role_arn": "${cluster-role.arn}", "cluster_name": "demo"},
        },
    ],
    "outputs": {"clusterRole": "${eks.arn}"},
}


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Working directory with a declaration file and a config pointing state and cloud into it."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("CONVERGE_STATE_DIR", raising=False)
    monkeypatch.setenv("CONVERGE_ASCII", "1")
    monkeypatch.chdir(tmp_path)
    (tmp_path / "stack.yaml").write_text(yaml.safe_dump(DECLARATION, sort_keys=False))
    _write_config(tmp_path)
    return tmp_path


def _write_config(root, fail_on=None):
    options = {"path": str(root / "cloud.json")}
    if fail_on:
        options["fail_on"] = fail_on
    config = {
        "state": {"path": str(root / "state")},
        "provider": {"name": "local", "options": options},
        "engine": {"max_workers": 2, "provider_timeout_seconds": 30},
    }
    path = root / "converge.yaml"
    path.write_text(yaml.safe_dump(config))
    return str(path)


def _invoke(*args):
    return CliRunner().invoke(cli, list(args))


class TestBasics:
    
    def test_version(self):
        result = _invoke("version")
        
        assert result.exit_code == 0
        assert result.output.strip() == f"converge version {__version__}"
    
    def test_validate(self, project):
        result = _invoke("validate", "stack.yaml")
        
        assert result.exit_code == 0
        assert "Valid: 3 resources, 2 dependencies" in result.output
    
    def test_validate_cycle(self, project):
        (project / "cycle.yaml").write_text(yaml.safe_dump({"resources": [
            {"name": "a", "kind": "Queue", "depends_on": ["b"]},
            {"name": "b", "kind": "Queue", "depends_on": ["a"]},
        ]}))
        
        result = _invoke("validate", "cycle.yaml")
        
        assert result.exit_code == 1
        assert "Dependency cycle detected" in result.output
    
    def test_missing_file(self, project):
        result = _invoke("apply", "nope.yaml")
        
        assert result.exit_code == 1
        assert "File not found" in result.output
    
    def test_graph(self, project):
        result = _invoke("graph", "stack.yaml", "--json", "--output", "graph.json")
        
        assert result.exit_code == 0
        data = json.loads((project / "graph.json").read_text())
        assert data["order"] == ["vpc", "cluster-role", "eks"]
        assert data["resources"]["eks"]["dependencies"] == ["vpc", "cluster-role"]


class TestPlanApply:
    
    def test_plan_fresh(self, project):
        result = _invoke("plan", "stack.yaml", "--config", "converge.yaml", "--json", "--output", "plan.json")
        
        assert result.exit_code == 0
        data = json.loads((project / "plan.json").read_text())
        assert [a["action"] for a in data["actions"]] == ["Create", "Create", "Create"]
        assert not (project / "state").exists()
    
    def test_apply_then_noop(self, project):
        first = _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--quiet", "--json", "--output", "first.json")
        second = _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--quiet", "--json", "--output", "second.json")
        
        assert first.exit_code == 0
        assert second.exit_code == 0
        first_data = json.loads((project / "first.json").read_text())
        second_data = json.loads((project / "second.json").read_text())
        assert first_data["status"] == "Success"
        assert first_data["outputs"]["clusterRole"].startswith("arn:aws:eks:")
        assert [r["action"] for r in second_data["results"]] == ["NoOp", "NoOp", "NoOp"]
        assert second_data["outputs"] == first_data["outputs"]
    
    def test_apply_human_output(self, project):
        result = _invoke("apply", "stack.yaml", "--config", "converge.yaml")
        
        assert result.exit_code == 0
        assert "Status: Success (3 applied, 0 failed, 0 skipped)" in result.output
    
    def test_partial_failure_exit_code(self, project):
        config = _write_config(project, fail_on=["create:Network"])
        
        result = _invoke("apply", "stack.yaml", "--config", config, "--quiet", "--json", "--output", "result.json")
        
        assert result.exit_code == 2
        data = json.loads((project / "result.json").read_text())
        statuses = {r["name"]: r["status"] for r in data["results"]}
        assert statuses == {"vpc": "Failed", "cluster-role": "Applied", "eks": "Skipped"}
        assert data["unresolved_outputs"] == ["clusterRole"]
    
    def test_total_failure_exit_code(self, project):
        config = _write_config(project, fail_on=["create:Network", "create:Role"])
        
        result = _invoke("apply", "stack.yaml", "--config", config, "--quiet")
        
        assert result.exit_code == 1
    
    def test_invalid_declaration(self, project):
        (project / "bad.yaml").write_text(yaml.safe_dump({"resources": [{"name": "vpc", "kind": "Network"}]}))
        
        result = _invoke("apply", "bad.yaml", "--config", "converge.yaml")
        
        assert result.exit_code == 1
        assert "cidr" in result.output
        assert "converge validate" in result.output
    
    def test_state_dir_override(self, project):
        result = _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--state-dir", "other-state", "--quiet")
        
        assert result.exit_code == 0
        assert (project / "other-state" / "resources" / "eks.json").exists()
        assert not (project / "state").exists()
    
    def test_report_dir(self, project):
        result = _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--quiet", "--report-dir", "artifacts")
        
        assert result.exit_code == 0
        summary = json.loads((project / "artifacts" / "summary.json").read_text())
        assert summary["status"] == "Success"
        
        markdown = _invoke("report", "markdown", "-i", "artifacts/apply_result.json", "-o", "report.md")
        assert markdown.exit_code == 0
        assert "# Converge Apply Report" in (project / "report.md").read_text()


class TestStateAndDestroy:
    
    def test_state_list_show_rm(self, project):
        _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--quiet")
        
        listing = _invoke("state", "list", "--config", "converge.yaml")
        assert listing.exit_code == 0
        assert "Applied  Cluster      eks  demo" in listing.output
        
        show = _invoke("state", "show", "vpc", "--config", "converge.yaml")
        assert show.exit_code == 0
        assert json.loads(show.output)["status"] == "Applied"
        
        removed = _invoke("state", "rm", "vpc", "--config", "converge.yaml", "--yes")
        assert removed.exit_code == 0
        assert _invoke("state", "show", "vpc", "--config", "converge.yaml").exit_code == 1
    
    def test_destroy(self, project):
        _invoke("apply", "stack.yaml", "--config", "converge.yaml", "--quiet")
        
        result = _invoke("destroy", "--config", "converge.yaml", "--yes")
        
        assert result.exit_code == 0
        assert "No resources in state." in _invoke("state", "list", "--config", "converge.yaml").output
        cloud = json.loads((project / "cloud.json").read_text())
        assert cloud["resources"] == {}
    
    def test_destroy_nothing(self, project):
        result = _invoke("destroy", "--config", "converge.yaml", "--yes")
        
        assert result.exit_code == 0
        assert "Nothing to destroy." in result.output


class TestInit:
    
    def test_init_writes_valid_declaration(self, project):
        result = _invoke("init", "--stack", "eks", "--stack", "messaging", "-o", "bundled.yaml")
        
        assert result.exit_code == 0
        assert "Wrote 8 resources" in result.output
        assert _invoke("validate", "bundled.yaml").exit_code == 0
    
    def test_init_refuses_overwrite(self, project):
        result = _invoke("init", "--stack", "eks", "-o", "stack.yaml")
        
        assert result.exit_code == 1
        assert "already exists" in result.output
