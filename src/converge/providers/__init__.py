from .base import ProviderPort
from .local import LocalCloudProvider
from .registry import SUPPORTED_PROVIDERS, create_provider

__all__ = ["ProviderPort", "LocalCloudProvider", "SUPPORTED_PROVIDERS", "create_provider"]
