"""Tests for configuration loading."""

import pytest
import yaml
from converge.config import EngineConfig, STATE_DIR_ENV, load_engine_config
from converge.config.manager import _deep_merge, load_config
from converge.utils.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Empty home and working directory so no real config leaks in."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(STATE_DIR_ENV, raising=False)
    monkeypatch.chdir(work)
    return home, work


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadEngineConfig:
    
    def test_packaged_defaults(self, isolated):
        config = load_engine_config()
        
        assert config.max_workers == 4
        assert config.provider_timeout_seconds == 300
        assert config.state_path == ".converge/state"
        assert config.provider_name == "local"
        assert config.provider_options["region"] == "us-east-1"
        assert config.log_level == "INFO"
    
    def test_project_overrides_user(self, isolated):
        home, work = isolated
        _write(home / ".converge" / "config.yaml", {"engine": {"max_workers": 8, "provider_timeout_seconds": 10}})
        _write(work / ".converge" / "config.yaml", {"engine": {"max_workers": 2}})
        
        config = load_engine_config()
        
        assert config.max_workers == 2
        assert config.provider_timeout_seconds == 10
    
    def test_explicit_file_applied_last(self, isolated, tmp_path):
        home, work = isolated
        _write(work / ".converge" / "config.yaml", {"state": {"path": "project-state"}})
        explicit = _write(tmp_path / "ci.yaml", {"state": {"path": "ci-state"}, "logging": {"level": "debug"}})
        
        config = load_engine_config(str(explicit))
        
        assert config.state_path == "ci-state"
        assert config.log_level == "DEBUG"
    
    def test_provider_options_merge(self, isolated, tmp_path):
        explicit = _write(tmp_path / "c.yaml", {"provider": {"options": {"region": "eu-west-1"}}})
        
        config = load_engine_config(str(explicit))
        
        assert config.provider_options["region"] == "eu-west-1"
        assert config.provider_options["account_id"] == "123456789012"
    
    def test_env_overrides_state_path(self, isolated, monkeypatch):
        monkeypatch.setenv(STATE_DIR_ENV, "/tmp/elsewhere")
        
        assert load_engine_config().state_path == "/tmp/elsewhere"
    
    def test_skip_user_config(self, isolated):
        home, _ = isolated
        _write(home / ".converge" / "config.yaml", {"engine": {"max_workers": 9}})
        
        assert load_engine_config(use_user_config=False).max_workers == 4
    
    def test_invalid_yaml(self, isolated, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("engine: [")
        
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_engine_config(str(bad))
    
    def test_invalid_value(self, isolated, tmp_path):
        bad = _write(tmp_path / "bad.yaml", {"engine": {"max_workers": 0}})
        
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_engine_config(str(bad))
    
    def test_section_must_be_mapping(self, isolated, tmp_path):
        bad = _write(tmp_path / "bad.yaml", {"engine": [1, 2]})
        
        with pytest.raises(ConfigError, match="engine"):
            load_engine_config(str(bad))
    
    def test_missing_explicit_file(self, isolated, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_engine_config(str(tmp_path / "absent.yaml"))


class TestManager:
    
    def test_project_config_overrides_user_config(self, isolated):
        home, work = isolated
        _write(home / ".converge" / "config.yaml", {"engine": {"max_workers": 3, "provider_timeout": 10}})
        _write(work / ".converge" / "config.yaml", {"engine": {"max_workers": 6}})
        
        assert load_config() == {"engine": {"max_workers": 6, "provider_timeout": 10}}
    
    def test_deep_merge(self):
        base = {"a": {"b": 1, "c": 2}, "d": 1}
        _deep_merge(base, {"a": {"c": 3}, "e": 4})
        
        assert base == {"a": {"b": 1, "c": 3}, "d": 1, "e": 4}


def test_engine_config_defaults():
    config = EngineConfig()
    
    assert config.max_workers == 4
    assert config.provider_name == "local"
