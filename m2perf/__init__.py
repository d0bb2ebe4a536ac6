"""m2perf core package."""

from .core.collector import Collector
from .core.models import ActionPlanItem, Finding, FindingError, Insight, Plan, Priority
from .core.synthesis import PlanSettings, Synthesizer

__all__ = [
    "ActionPlanItem",
    "Collector",
    "Finding",
    "FindingError",
    "Insight",
    "Plan",
    "PlanSettings",
    "Priority",
    "Synthesizer",
]

__version__ = "0.3.0"
