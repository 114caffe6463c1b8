"""Configuration module: load engine, state and provider settings."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .manager import load_config, read_yaml, _deep_merge
from .paths import get_defaults_path, get_user_config_path, get_project_config_path

logger = get_logger("config")

STATE_DIR_ENV = "CONVERGE_STATE_DIR"


class EngineConfig(BaseModel):
    """Resolved settings for one plan/apply session."""
    max_workers: int = Field(default=4, ge=1, description="Worker pool size")
    provider_timeout_seconds: Optional[float] = Field(default=300, gt=0, description="Per provider call deadline (None disables)")
    state_path: str = Field(default=".converge/state", description="State store directory")
    provider_name: str = Field(default="local", description="Provider registry name")
    provider_options: Dict[str, Any] = Field(default_factory=dict, description="Provider constructor options")
    log_level: str = Field(default="INFO", description="Logging level name")


def load_engine_config(config_path: Optional[str] = None, use_user_config: bool = True) -> EngineConfig:
    """
    Load configuration: packaged defaults, then user/project files, then an explicit file.
    
    Args:
        config_path: Optional explicit config YAML, applied last
        use_user_config: Whether to merge ~/.converge and .converge config files
        
    Returns:
        EngineConfig
        
    Raises:
        ConfigError: If any config file is invalid
    """
    config = copy.deepcopy(read_yaml(get_defaults_path()))
    
    if use_user_config:
        _deep_merge(config, load_config())
    
    if config_path is not None:
        _deep_merge(config, read_yaml(Path(config_path)))
        logger.info(f"Loaded configuration from {config_path}")
    
    for section in ("engine", "state", "provider"):
        if not isinstance(config.get(section, {}), dict):
            raise ConfigError(f"Config section '{section}' must be a dictionary")
    
    engine = config.get("engine", {})
    state = config.get("state", {})
    provider = config.get("provider", {})
    logging_section = config.get("logging", {}) or {}
    
    state_path = os.getenv(STATE_DIR_ENV) or state.get("path", ".converge/state")
    
    try:
        return EngineConfig(
            max_workers=engine.get("max_workers", 4),
            provider_timeout_seconds=engine.get("provider_timeout_seconds", 300),
            state_path=str(state_path),
            provider_name=provider.get("name", "local"),
            provider_options=provider.get("options") or {},
            log_level=str(logging_section.get("level", "INFO")).upper(),
        )
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")


__all__ = [
    "EngineConfig",
    "load_engine_config",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]
