"""Custom exception classes for Converge."""

from typing import List, Optional


class ConvergeError(Exception):
    """Base exception for all Converge errors."""
    pass


class ValidationError(ConvergeError):
    """Raised when the declared resource set is invalid. Nothing has been touched."""
    pass


class DeclarationError(ValidationError):
    """Raised when a declaration file cannot be loaded or is malformed."""
    pass


class DuplicateNameError(ValidationError):
    """Raised when two resources share a logical name."""
    
    def __init__(self, names: List[str]):
        self.names = sorted(set(names))
        super().__init__(f"Duplicate resource names: {', '.join(self.names)}")


class UnresolvedReferenceError(ValidationError):
    """Raised when a resource references a logical name that is not declared."""
    
    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Resource '{source}' references unknown resource '{target}'")


class CycleError(ValidationError):
    """Raised when resource dependencies form a cycle."""
    
    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class PlanError(ConvergeError):
    """Raised when a plan cannot be computed (e.g. illegal immutable change)."""
    
    def __init__(self, message: str, resource: Optional[str] = None):
        self.resource = resource
        super().__init__(message)


class ProviderError(ConvergeError):
    """Raised by a provider when a resource operation fails. Scoped to one resource."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its deadline."""
    pass


class ResourceNotFoundError(ProviderError):
    """Raised when a provider cannot find the requested resource."""
    pass


class StateStoreError(ConvergeError):
    """Raised when persisted state cannot be read or written. Fatal for an apply."""
    pass


class ConfigError(ConvergeError):
    """Raised when configuration is invalid or missing."""
    pass
