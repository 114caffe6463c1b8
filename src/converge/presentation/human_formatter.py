"""Human-friendly output formatter - converts plans and apply results to readable text."""

import json
import os
from typing import Any, List, Optional
from ..execution.results import ApplyResult, ApplyStatus, NodeStatus
from ..plan.models import ActionType, Plan

ACTION_SYMBOLS = {
    ActionType.CREATE: ("+", "+"),
    ActionType.UPDATE: ("~", "~"),
    ActionType.DELETE: ("-", "-"),
    ActionType.NO_OP: (" ", "="),
}

STATUS_SYMBOLS = {
    NodeStatus.APPLIED: ("✅", "[OK]"),
    NodeStatus.FAILED: ("❌", "[FAIL]"),
    NodeStatus.SKIPPED: ("⏭️ ", "[SKIP]"),
}


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("CONVERGE_ASCII", "").lower() in ("1", "true", "yes")


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _short(value: Any, limit: int = 60) -> str:
    text = value if isinstance(value, str) else json.dumps(value, sort_keys=True, default=str)
    return text if len(text) <= limit else text[:limit - 3] + "..."


def format_plan(plan: Plan, ascii_mode: Optional[bool] = None, show_noop: bool = True) -> str:
    """
    Render a plan as text.
    
    Args:
        plan: Plan to render
        ascii_mode: Force ASCII output (defaults to CONVERGE_ASCII env var)
        show_noop: Include NoOp entries
        
    Returns:
        Multi-line string
    """
    use_ascii = _use_ascii(ascii_mode)
    lines = _section("Converge Plan")
    lines.append("")
    
    if not plan.actions:
        lines.append("No resources declared and nothing in state.")
        return "\n".join(lines)
    
    for action in plan.actions:
        if action.action == ActionType.NO_OP and not show_noop:
            continue
        symbol = ACTION_SYMBOLS[action.action][1 if use_ascii else 0]
        tag = " (replace)" if action.replacement else ""
        lines.append(f" {symbol} [{action.index}] {action.action.value:<6} {action.kind.value:<12} {action.name}{tag}")
        if action.action != ActionType.NO_OP and action.reason:
            lines.append(f"       {action.reason}")
        if action.action in (ActionType.CREATE, ActionType.UPDATE) and action.spec and action.changed_properties:
            for key in action.changed_properties:
                old = action.prior_state.properties.get(key) if action.prior_state else None
                new = action.spec.properties.get(key)
                arrow = "->" if use_ascii else "→"
                lines.append(f"         {key}: {_short(old)} {arrow} {_short(new)}")
    
    lines.append("")
    counts = plan.summary()
    lines.append(
        f"Plan: {counts['Create']} to create, {counts['Update']} to update, "
        f"{counts['Delete']} to delete, {counts['NoOp']} unchanged."
    )
    if not plan.has_changes:
        lines.append("Infrastructure is up to date.")
    return "\n".join(lines)


def format_apply_result(result: ApplyResult, ascii_mode: Optional[bool] = None) -> str:
    """
    Render an apply result as text. Every action is listed; failures include their error.
    
    Args:
        result: ApplyResult to render
        ascii_mode: Force ASCII output (defaults to CONVERGE_ASCII env var)
        
    Returns:
        Multi-line string
    """
    use_ascii = _use_ascii(ascii_mode)
    lines = _section("Converge Apply")
    lines.append("")
    
    for node in result.results:
        symbol = STATUS_SYMBOLS[node.status][1 if use_ascii else 0]
        lines.append(f" {symbol} {node.action.value:<6} {node.kind.value:<12} {node.name}: {node.status.value}")
        if node.status == NodeStatus.FAILED:
            lines.append(f"       {node.error_type}: {node.error}")
        elif node.status == NodeStatus.SKIPPED:
            lines.append(f"       {node.skipped_reason}")
    
    if result.outputs:
        lines.append("")
        lines.extend(_section("Outputs"))
        for key, value in result.outputs.items():
            marker = " (unresolved)" if key in result.unresolved_outputs else ""
            lines.append(f" {key} = {_short(value, limit=100)}{marker}")
    
    lines.append("")
    counts = result.summary()
    lines.append(
        f"Status: {result.status.value} "
        f"({counts['Applied']} applied, {counts['Failed']} failed, {counts['Skipped']} skipped)"
    )
    if result.cancelled:
        lines.append("Apply was cancelled; undispatched resources were skipped.")
    if result.status != ApplyStatus.SUCCESS and result.failed:
        lines.append("Failed resources:")
        for node in result.failed:
            lines.append(f"  - {node.name}: {node.error}")
    return "\n".join(lines)
