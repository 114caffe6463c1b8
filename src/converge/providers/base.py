"""Abstract base class for cloud providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict
from ..resources.kinds import ResourceKind


class ProviderPort(ABC):
    """
    Narrow interface the executor uses to reach a cloud platform.
    
    Implementations raise ProviderError (or a subclass) on failure. The
    executor does not assume calls are idempotent: it relies on the state
    store to avoid creating the same resource twice.
    """
    
    name: str = "provider"
    
    @abstractmethod
    def create(self, kind: ResourceKind, properties: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a resource.
        
        Args:
            kind: Resource kind
            properties: Fully resolved properties (no placeholders)
            
        Returns:
            Outputs of the new resource; must include "id"
        """
        pass
    
    @abstractmethod
    def read(self, kind: ResourceKind, resource_id: str) -> Dict[str, Any]:
        """
        Read live properties of a resource.
        
        Raises:
            ResourceNotFoundError: If the resource does not exist
        """
        pass
    
    @abstractmethod
    def update(self, kind: ResourceKind, resource_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Update a resource in place and return its outputs."""
        pass
    
    @abstractmethod
    def delete(self, kind: ResourceKind, resource_id: str) -> None:
        """Delete a resource."""
        pass
