"""Markdown report generation from ApplyResult."""

from pathlib import Path
from ..execution.results import ApplyResult, NodeStatus
from ..utils.errors import ConvergeError
from ..utils.logging import get_logger

logger = get_logger("report.markdown")


def render_markdown(result: ApplyResult) -> str:
    """Render an ApplyResult as a markdown document."""
    counts = result.summary()
    sections = [
        "# Converge Apply Report",
        "",
        "## Summary",
        "",
        f"- **Status:** {result.status.value}",
        f"- **Applied:** {counts['Applied']}",
        f"- **Failed:** {counts['Failed']}",
        f"- **Skipped:** {counts['Skipped']}",
    ]
    if result.cancelled:
        sections.append("- **Cancelled:** yes")
    sections.append("")
    
    sections.append("## Resources")
    sections.append("")
    sections.append("| # | Resource | Kind | Action | Status | Detail |")
    sections.append("|---|----------|------|--------|--------|--------|")
    for node in result.results:
        if node.status == NodeStatus.FAILED:
            detail = node.error or ""
        elif node.status == NodeStatus.SKIPPED:
            detail = node.skipped_reason or ""
        else:
            detail = f"id `{node.outputs['id']}`" if "id" in node.outputs else ""
        detail = detail.replace("|", "\\|")
        sections.append(f"| {node.index} | `{node.name}` | {node.kind.value} | {node.action.value} | {node.status.value} | {detail} |")
    sections.append("")
    
    if result.failed:
        sections.append("## Failures")
        sections.append("")
        for node in result.failed:
            sections.append(f"- **{node.name}** ({node.action.value}): {node.error_type}: {node.error}")
        sections.append("")
    
    if result.outputs:
        sections.append("## Outputs")
        sections.append("")
        for key, value in result.outputs.items():
            suffix = " _(unresolved)_" if key in result.unresolved_outputs else ""
            sections.append(f"- **{key}:** `{value}`{suffix}")
        sections.append("")
    
    return "\n".join(sections)


def generate_markdown(result: ApplyResult, output_path: Path) -> None:
    """
    Generate markdown report from an ApplyResult.
    
    Args:
        result: ApplyResult from an apply
        output_path: Path to output markdown file
        
    Raises:
        ConvergeError: If file write fails
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(render_markdown(result))
        logger.info(f"Generated markdown report: {output_path}")
    except OSError as e:
        raise ConvergeError(f"Failed to write markdown report: {e}")
