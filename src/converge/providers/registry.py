"""Declarative registry of providers the CLI can construct by name."""

from pathlib import Path
from typing import Any, Dict, Optional
from .base import ProviderPort
from .local import LocalCloudProvider
from ..utils.errors import ConfigError

SUPPORTED_PROVIDERS = {
    "local": {
        "factory": LocalCloudProvider,
        "description": "Simulated cloud persisted to a local JSON file",
        "options": ["path", "region", "account_id", "fail_on", "latency_seconds"],
    },
}


def create_provider(name: str, options: Optional[Dict[str, Any]] = None) -> ProviderPort:
    """
    Construct a provider by registry name.
    
    Args:
        name: Provider name (see SUPPORTED_PROVIDERS)
        options: Provider constructor options
        
    Returns:
        ProviderPort instance
        
    Raises:
        ConfigError: If the provider is unknown or options are invalid
    """
    if name not in SUPPORTED_PROVIDERS:
        raise ConfigError(f"Unsupported provider: {name}. Supported: {', '.join(sorted(SUPPORTED_PROVIDERS))}")
    
    entry = SUPPORTED_PROVIDERS[name]
    options = dict(options or {})
    unknown = sorted(set(options) - set(entry["options"]))
    if unknown:
        raise ConfigError(f"Unknown options for provider '{name}': {', '.join(unknown)}")
    
    if "path" in options and options["path"] is not None:
        options["path"] = Path(options["path"])
    if "fail_on" in options and options["fail_on"]:
        options["fail_on"] = [
            tuple(item.split(":", 1)) if isinstance(item, str) else tuple(item)
            for item in options["fail_on"]
        ]
    
    try:
        return entry["factory"](**options)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid options for provider '{name}': {e}")
