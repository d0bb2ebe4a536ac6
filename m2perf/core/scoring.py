"""Impact, effort and ROI heuristics for findings.

All functions here are pure. The lookup tables are tuning constants; bump
``SCORING_TABLE_VERSION`` whenever one of them changes so reports produced
with different tables can be told apart.
"""
from __future__ import annotations

from typing import Mapping, Sequence, Tuple

from .models import Finding, Priority

SCORING_TABLE_VERSION = "1"

BASE_SCORES: Mapping[Priority, int] = {
    Priority.HIGH: 10,
    Priority.MEDIUM: 5,
    Priority.LOW: 2,
}

AREA_MULTIPLIERS: Mapping[str, float] = {
    "redis": 1.5,
    "caching": 1.4,
    "cache": 1.4,
    "database": 1.3,
    "security": 1.2,
}
DEFAULT_AREA_MULTIPLIER = 1.0

# Order matters: the first keyword contained in the title wins.
EFFORT_KEYWORDS: Sequence[Tuple[str, int]] = (
    ("configure", 2),
    ("enable", 1),
    ("disable", 1),
    ("install", 3),
    ("upgrade", 5),
    ("implement", 7),
    ("optimize", 5),
    ("review", 3),
    ("fix", 4),
)
DEFAULT_EFFORT = 5

_TIMELINE_STEPS: Sequence[Tuple[int, str]] = (
    (2, "1-2 days"),
    (4, "3-5 days"),
    (6, "1-2 weeks"),
    (8, "2-4 weeks"),
)
_TIMELINE_FALLBACK = "1+ months"

_RISK_STEPS: Sequence[Tuple[int, str]] = (
    (8, "Critical"),
    (5, "High"),
    (3, "Medium"),
)


def area_multiplier(area: str) -> float:
    return AREA_MULTIPLIERS.get(area, DEFAULT_AREA_MULTIPLIER)


def impact_score(finding: Finding) -> int:
    """Base score for the priority scaled by the area prior, truncated."""

    base = BASE_SCORES[Priority(finding.priority)]
    return int(base * area_multiplier(finding.area))


def effort_score(finding: Finding) -> int:
    title = finding.title.lower()
    for keyword, effort in EFFORT_KEYWORDS:
        if keyword in title:
            return effort
    return DEFAULT_EFFORT


def roi_score(
    finding: Finding,
    impact: int | None = None,
    effort: int | None = None,
) -> float:
    """Impact per unit of effort; effort is clamped to at least one."""

    if impact is None:
        impact = impact_score(finding)
    if effort is None:
        effort = effort_score(finding)
    return impact / max(effort, 1)


def timeline_estimate(effort: int) -> str:
    for limit, label in _TIMELINE_STEPS:
        if effort <= limit:
            return label
    return _TIMELINE_FALLBACK


def risk_level(impact: float) -> str:
    for floor, label in _RISK_STEPS:
        if impact >= floor:
            return label
    return "Low"


__all__ = [
    "AREA_MULTIPLIERS",
    "BASE_SCORES",
    "DEFAULT_EFFORT",
    "EFFORT_KEYWORDS",
    "SCORING_TABLE_VERSION",
    "area_multiplier",
    "effort_score",
    "impact_score",
    "risk_level",
    "roi_score",
    "timeline_estimate",
]
