"""Presentation layer - render plans and apply results for humans."""

from .human_formatter import format_plan, format_apply_result

__all__ = ["format_plan", "format_apply_result"]
