from .kinds import ResourceKind, ReplacementPolicy, KindTraits, KIND_TRAITS, get_traits
from .models import ResourceSpec
from .references import OutputRef, find_references, resolve_properties, resolve_references

__all__ = [
    "ResourceKind",
    "ReplacementPolicy",
    "KindTraits",
    "KIND_TRAITS",
    "get_traits",
    "ResourceSpec",
    "OutputRef",
    "find_references",
    "resolve_properties",
    "resolve_references",
]
