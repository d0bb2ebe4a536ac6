"""Core data models for m2perf."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Mapping, Sequence


class FindingError(ValueError):
    """Raised when a finding cannot be constructed from the given values."""


class Priority(IntEnum):
    """Ordinal severity of a finding; higher is more urgent."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: object) -> "Priority":
        """Accept a priority member, its integer value or its name."""

        if isinstance(value, bool):
            raise FindingError(f"Invalid priority {value!r}")
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise FindingError(f"Priority must be 1, 2 or 3, got {value}") from None
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        raise FindingError(f"Invalid priority {value!r}")


def _check_priority(value: object) -> Priority:
    # Strings are only accepted through Priority.parse; a Finding takes numbers.
    if isinstance(value, bool) or not isinstance(value, int):
        raise FindingError(f"Priority must be an integer 1-3, got {value!r}")
    return Priority.parse(value)


@dataclass(frozen=True)
class Finding:
    """One detected issue together with its remediation text."""

    area: str
    title: str
    priority: int
    details: str
    explanation: str | None = None
    affected_paths: Sequence[str] = field(default_factory=tuple)
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.area, str) or not self.area.strip():
            raise FindingError("Finding area must be a non-empty string")
        if not isinstance(self.title, str) or not self.title.strip():
            raise FindingError("Finding title must be a non-empty string")
        object.__setattr__(self, "priority", _check_priority(self.priority))
        object.__setattr__(self, "details", self.details or "")
        if isinstance(self.affected_paths, (str, bytes)):
            raise FindingError("Finding affected_paths must be a sequence of paths, not a single string")
        object.__setattr__(self, "affected_paths", tuple(str(p) for p in self.affected_paths))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    def __hash__(self) -> int:
        # metadata is a mapping proxy and cannot be hashed
        return hash((self.area, self.title, int(self.priority), self.details, self.explanation))

    @property
    def priority_label(self) -> str:
        return Priority(self.priority).label

    @property
    def has_paths(self) -> bool:
        return bool(self.affected_paths)

    @property
    def has_metadata(self) -> bool:
        return bool(self.metadata)


@dataclass(frozen=True)
class ActionPlanItem:
    """A finding annotated with its impact, effort and ROI scores."""

    finding: Finding
    impact_score: int
    effort_score: int
    roi_score: float
    dependencies: Sequence[str] = field(default_factory=tuple)
    timeline: str = ""
    steps: Sequence[str] = field(default_factory=tuple)


@dataclass(frozen=True)
class Plan:
    """Effort-bucketed remediation plan."""

    quick_wins: Sequence[ActionPlanItem]
    strategic: Sequence[ActionPlanItem]
    long_term: Sequence[ActionPlanItem]
    summary: str
    narrative: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.quick_wins or self.strategic or self.long_term)


@dataclass(frozen=True)
class Insight:
    """Projection for a recurring pattern of findings."""

    pattern: str
    current_impact: int
    predicted_impact_30d: float
    predicted_impact_90d: float
    risk_level: str
    mitigation_strategy: str
    description: str = ""


__all__ = ["ActionPlanItem", "Finding", "FindingError", "Insight", "Plan", "Priority"]
