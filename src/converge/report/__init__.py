"""Report generation from ApplyResult (read-only)."""

from .artifact import generate_artifacts
from .markdown import generate_markdown

__all__ = ["generate_artifacts", "generate_markdown"]
