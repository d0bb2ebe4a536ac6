"""Markdown reporting."""
from __future__ import annotations

import re
from collections import Counter
from typing import List, Sequence, Tuple

from ..core.models import ActionPlanItem, Finding, Insight, Plan, Priority

_TABLE_HEADER = "| Area | Priority | Title |"
_ROW_SPLIT = re.compile(r"(?<!\\)\|")


def _cell(text: str) -> str:
    text = " ".join(text.splitlines())
    return text.replace("\\", "\\\\").replace("|", "\\|")


def _uncell(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text.strip())


def _summary_table(findings: Sequence[Finding]) -> List[str]:
    lines = [_TABLE_HEADER, "| --- | --- | --- |"]
    for finding in findings:
        lines.append(f"| {_cell(finding.area)} | {finding.priority_label} | {_cell(finding.title)} |")
    return lines


def _plan_section(title: str, items: Sequence[ActionPlanItem]) -> List[str]:
    lines = [f"### {title}", ""]
    if not items:
        lines.extend(["_Nothing in this bucket._", ""])
        return lines
    for index, item in enumerate(items, start=1):
        finding = item.finding
        line = (
            f"{index}. **{finding.title}** ({finding.area}) - impact {item.impact_score}, "
            f"effort {item.effort_score}, ROI {item.roi_score:.2f}, {item.timeline}"
        )
        lines.append(line)
        if item.dependencies:
            lines.append(f"   - Depends on: {', '.join(item.dependencies)}")
    lines.append("")
    return lines


def _insight_lines(insights: Sequence[Insight]) -> List[str]:
    lines = ["## Predictive Insights", ""]
    if not insights:
        lines.extend(["No recurring patterns detected.", ""])
        return lines
    lines.append("_Projections use fixed illustrative growth factors._")
    lines.append("")
    for insight in insights:
        lines.extend(
            [
                f"- **{insight.pattern}** ({insight.risk_level}): impact {insight.current_impact}/10, "
                f"30d {insight.predicted_impact_30d:.1f}, 90d {insight.predicted_impact_90d:.1f}",
                f"  - {insight.mitigation_strategy}",
            ]
        )
    lines.append("")
    return lines


def to_markdown(
    findings: Sequence[Finding],
    plan: Plan | None = None,
    insights: Sequence[Insight] | None = None,
) -> str:
    """Render findings, and optionally a plan, to a Markdown report."""

    findings = list(findings)
    counts = Counter(finding.priority_label for finding in findings)
    lines: List[str] = [
        "# Magento Performance Report",
        "",
        "## Priority Overview",
    ]
    for level in (Priority.HIGH, Priority.MEDIUM, Priority.LOW):
        lines.append(f"- **{level.label}:** {counts.get(level.label, 0)} findings")
    lines.extend(["", "## Findings", ""])
    if findings:
        lines.extend(_summary_table(findings))
        lines.append("")
        for finding in findings:
            lines.extend([f"### {finding.title} ({finding.priority_label})", "", f"- **Area:** {finding.area}"])
            if finding.affected_paths:
                lines.append(f"- **Affected paths:** {len(finding.affected_paths)}")
                lines.extend(f"  - `{path}`" for path in finding.affected_paths)
            lines.extend(["", "```", finding.details, "```", ""])
            if finding.explanation:
                lines.extend([f"> {finding.explanation}", ""])
    else:
        lines.append("No issues were identified.")
        lines.append("")

    if plan is not None:
        lines.extend(["## Action Plan", "", plan.summary, ""])
        if plan.narrative:
            lines.extend([plan.narrative, ""])
        lines.extend(_plan_section("Quick Wins", plan.quick_wins))
        lines.extend(_plan_section("Strategic", plan.strategic))
        lines.extend(_plan_section("Long Term", plan.long_term))
    if insights is not None:
        lines.extend(_insight_lines(insights))
    return "\n".join(lines)


def parse_markdown_findings(text: str) -> List[Tuple[str, str, int]]:
    """Recover (area, title, priority) triples from a rendered report."""

    triples: List[Tuple[str, str, int]] = []
    in_table = False
    for line in text.splitlines():
        if line.strip() == _TABLE_HEADER:
            in_table = True
            continue
        if not in_table:
            continue
        if not line.startswith("|"):
            break
        cells = [_uncell(cell) for cell in _ROW_SPLIT.split(line.strip())[1:-1]]
        if len(cells) != 3 or cells[0] == "---":
            continue
        area, label, title = cells
        triples.append((area, title, int(Priority.parse(label))))
    return triples


__all__ = ["parse_markdown_findings", "to_markdown"]
