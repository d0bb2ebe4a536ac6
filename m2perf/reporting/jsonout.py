"""JSON reporting."""
from __future__ import annotations

from dataclasses import asdict, is_dataclass
from types import MappingProxyType
from typing import Any, Sequence

from ..core.models import ActionPlanItem, Finding, Insight, Plan
from ..core.scoring import SCORING_TABLE_VERSION
from ..core.utils import json_dump, now_utc


def _convert(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: _convert(v) for k, v in asdict(obj).items()}
    if isinstance(obj, (dict, MappingProxyType)):
        return {str(k): _convert(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert(item) for item in obj]
    return obj


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    # asdict() cannot deep-copy the read-only metadata mapping
    return {
        "area": finding.area,
        "title": finding.title,
        "priority": int(finding.priority),
        "priority_label": finding.priority_label,
        "details": finding.details,
        "explanation": finding.explanation,
        "affected_paths": list(finding.affected_paths),
        "metadata": _convert(finding.metadata),
    }


def _item_to_dict(item: ActionPlanItem) -> dict[str, Any]:
    return {
        "finding": finding_to_dict(item.finding),
        "impact_score": item.impact_score,
        "effort_score": item.effort_score,
        "roi_score": round(item.roi_score, 4),
        "dependencies": list(item.dependencies),
        "timeline": item.timeline,
        "steps": list(item.steps),
    }


def plan_to_dict(plan: Plan) -> dict[str, Any]:
    return {
        "quick_wins": [_item_to_dict(item) for item in plan.quick_wins],
        "strategic": [_item_to_dict(item) for item in plan.strategic],
        "long_term": [_item_to_dict(item) for item in plan.long_term],
        "summary": plan.summary,
        "narrative": plan.narrative,
    }


def to_json(
    findings: Sequence[Finding],
    plan: Plan | None = None,
    insights: Sequence[Insight] | None = None,
    action_plan: Sequence[ActionPlanItem] | None = None,
) -> str:
    """Serialize findings, and optionally the synthesized plan, to JSON."""

    data: dict[str, Any] = {
        "generated_at": now_utc().isoformat(),
        "scoring_version": SCORING_TABLE_VERSION,
        "count": len(findings),
        "findings": [finding_to_dict(finding) for finding in findings],
    }
    if plan is not None:
        data["plan"] = plan_to_dict(plan)
    if action_plan is not None:
        data["action_plan"] = [_item_to_dict(item) for item in action_plan]
    if insights is not None:
        data["insights"] = [_convert(insight) for insight in insights]
    return json_dump(data)


__all__ = ["finding_to_dict", "plan_to_dict", "to_json"]
